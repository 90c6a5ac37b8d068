"""modgate - 运行时功能模块注册中心"""

__version__ = "1.0.0"
