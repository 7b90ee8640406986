# common/logger/logger_middleware/__init__.py
from .logger_middleware import *
from .request_timer import *
