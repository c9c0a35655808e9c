"""
live-bridge

透過 Chrome DevTools Protocol 呼叫頁面內注入的遠端函式。
"""

__version__ = "1.0.0"
