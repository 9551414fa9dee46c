from .console import Console
from .pagination import PageView, MultiSelectView, NavState
from .menus import MessengerCLI
