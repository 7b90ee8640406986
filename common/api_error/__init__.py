# common/api_error/__init__.py
from .app_error import *
from .config_error import *
