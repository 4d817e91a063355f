"""Resource-address gateway for winzig.

- DataGateway: routes ``scheme://authority[/table[/id]]`` addresses to
  table queries, inserts, updates and deletes
- ChangeNotifier: delivers write notifications to address observers
"""

from .notify import ChangeNotifier, Registration
from .provider import DataGateway

__all__ = [
    "DataGateway",
    "ChangeNotifier",
    "Registration",
]
