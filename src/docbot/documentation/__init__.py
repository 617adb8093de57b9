"""
Documentation index and rendering.

- **documentation_index.py**: Immutable, atomically published index of the
  extracted members with exact, fuzzy and autocomplete lookups.

- **member_renderer.py**: Pure function turning a member and its resolved
  source link into the markdown shown on Discord.
"""
