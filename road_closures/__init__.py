"""Road closure alerts: polls the closure feed and texts subscribers about changes.

Author: Road Closure Alerts contributors
License: MIT
"""

__version__ = "1.0.0"
