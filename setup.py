"""Setup configuration for DocBot Discord Bot."""

from setuptools import setup, find_packages

setup(
    name="docbot",
    version="0.1.0",
    description="A Discord bot serving API documentation of Python packages",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord>=2.5",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "prompt_toolkit>=3.0",
        "requests>=2.31",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "docbot=docbot.main:main",
        ],
    },
)
