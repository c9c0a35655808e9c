"""
輔助函數工具箱

包含通用工具函數與格式化功能
"""


def truncate_string(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """截斷過長的字串"""
    if len(text) > max_length:
        return text[:max_length] + suffix
    return text


def js_literal(value: bool) -> str:
    """Python bool 轉為 JavaScript 字面值"""
    return "true" if value else "false"
