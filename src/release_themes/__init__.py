"""Release Themes.

Collects the "major themes" of a release from the enhancement issues that
track them, scraping the release note, KEP reference and owning SIGs out of
each issue body.
"""

__version__ = "0.1.0"
