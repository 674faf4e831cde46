"""Contribution Finder.

Searches GitHub for open issues that fit a developer profile:
- Targeted search queries built from the profile's skills
- Issues already evaluated on a previous run are skipped
- New issues are ranked by Claude, best 3-5 kept
- Matches accumulate in a bounded, newest-first history
- History is written to a markdown report and a JSON state file
"""

__version__ = "1.0.0"
