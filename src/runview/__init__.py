"""
runview - Run details pages for experiment tracking servers.

Fetch a run, pick a tab, render the page.
"""

from runview.page.run_page import RunPage

__version__ = "0.1.0"
__all__ = ["RunPage", "__version__"]
