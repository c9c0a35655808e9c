"""
環境設定與常數

集中管理所有配置項，從環境變數載入。
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# 基本設定
# ═══════════════════════════════════════════════════════════════════════════════
# 專案根目錄
PROJECT_ROOT = Path(__file__).parent.parent.parent

# 載入 .env 檔案
ENV_PATH = PROJECT_ROOT / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH)
    logger.info(f"📁 已載入環境設定檔: {ENV_PATH}")

# ═══════════════════════════════════════════════════════════════════════════════
# CDP 連線設定
# ═══════════════════════════════════════════════════════════════════════════════
CDP_ENDPOINT = os.getenv("LIVE_BRIDGE_CDP_ENDPOINT", "http://127.0.0.1:9222")
COMMAND_TIMEOUT = float(os.getenv("LIVE_BRIDGE_COMMAND_TIMEOUT", "30.0"))  # 秒

# ═══════════════════════════════════════════════════════════════════════════════
# 遠端 Context 設定
# ═══════════════════════════════════════════════════════════════════════════════
# keepAlive 心跳間隔（秒）
KEEPALIVE_INTERVAL = float(os.getenv("LIVE_BRIDGE_KEEPALIVE_INTERVAL", "1.0"))

# 傳給 RemoteFunctions 的實驗性旗標
EXPERIMENTAL = os.getenv("LIVE_BRIDGE_EXPERIMENTAL", "false").lower() == "true"

# 注入頁面的全域名稱
COMMAND_NAMESPACE = "_LD"
UTILITY_NAMESPACE = "_LDjQuery"

# 元素代理用來重新選取節點的屬性
MARKER_ATTRIBUTE = "data-brackets-id"

# 遠端事件屬性前綴，例如 data-ld-highlight -> highlight
EVENT_ATTRIBUTE_PREFIX = "data-ld-"

# ═══════════════════════════════════════════════════════════════════════════════
# 注入腳本設定
# ═══════════════════════════════════════════════════════════════════════════════
REMOTE_FUNCTIONS_PATH = os.getenv("LIVE_BRIDGE_REMOTE_FUNCTIONS", "")
UTILITY_LIBRARY_PATH = os.getenv("LIVE_BRIDGE_UTILITY_LIBRARY", "")

if not REMOTE_FUNCTIONS_PATH:
    logger.debug("未設定 LIVE_BRIDGE_REMOTE_FUNCTIONS 環境變數")


def load_payload_sources(remote_functions_path: str | Path, utility_path: str | Path) -> tuple[str, str]:
    """
    讀取要注入頁面的兩份腳本

    Args:
        remote_functions_path: RemoteFunctions 腳本路徑（需為函式運算式）
        utility_path: 第三方工具函式庫（jQuery）腳本路徑

    Returns:
        (remote_functions, utility_source)

    Raises:
        FileNotFoundError: 任一腳本不存在
    """
    sources = []
    for path in (Path(remote_functions_path), Path(utility_path)):
        if not path.is_file():
            logger.error(f"❌ 找不到注入腳本: {path}")
            raise FileNotFoundError(f"找不到注入腳本: {path}")
        sources.append(path.read_text(encoding="utf-8"))
        logger.debug(f"已讀取注入腳本: {path} ({len(sources[-1]):,} 字元)")

    return sources[0], sources[1]
