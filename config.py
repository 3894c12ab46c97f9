"""
Application constants.

Everything here can be overridden at launch, see ``main.parse_args``.
"""

WINDOW_SIZE = 10
FETCH_TIMEOUT_MS = 500

TEST_SERVER_BASE_URL = "http://20.244.56.144/test"

# Shown in the result panel only, never requested.
DISPLAY_ENDPOINT = "http://localhost:9876/numbers/{key}"

DEFAULT_CATEGORY = "e"
DEFAULT_THEME = "dark"
THEMES = ("dark", "light")

WINDOW_TITLE = "Average Calculator"
WINDOW_GEOMETRY = (1100, 700)
