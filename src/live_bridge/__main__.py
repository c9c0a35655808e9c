"""
live-bridge 主入口

連接 Chrome CDP，注入 RemoteFunctions 並維持遠端 context。

使用方式：
    python -m live_bridge --remote-functions RemoteFunctions.js --utility-library jquery.min.js

Chrome 啟動參數：
    google-chrome --remote-debugging-port=9222 --user-data-dir=/tmp/chrome_debug
"""

import argparse
import asyncio
import json
import logging
import sys

from live_bridge.base.logging_config import setup_logging
from live_bridge.config import (
    CDP_ENDPOINT,
    EXPERIMENTAL,
    REMOTE_FUNCTIONS_PATH,
    UTILITY_LIBRARY_PATH,
    load_payload_sources,
)
from live_bridge.remote import InspectorConnection, RemoteAgent
from live_bridge.schemas import BridgeError
from live_bridge.utils import truncate_string

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """解析命令列參數"""
    parser = argparse.ArgumentParser(
        description="live-bridge - 透過 CDP 呼叫頁面內的遠端函式",
    )
    parser.add_argument("--cdp-endpoint", type=str, default=CDP_ENDPOINT, help=f"CDP Endpoint (預設: {CDP_ENDPOINT})")
    parser.add_argument("--ws-url", type=str, help="直接指定頁面 WebSocket URL")
    parser.add_argument("--remote-functions", type=str, default=REMOTE_FUNCTIONS_PATH, help="RemoteFunctions 腳本路徑")
    parser.add_argument("--utility-library", type=str, default=UTILITY_LIBRARY_PATH, help="jQuery 腳本路徑")
    parser.add_argument("--experimental", action="store_true", default=EXPERIMENTAL, help="啟用實驗性功能")
    parser.add_argument("--call", action="append", default=[], metavar="METHOD", help="載入後呼叫的遠端方法（可重複）")
    parser.add_argument("--event", action="append", default=[], metavar="NAME", help="記錄的遠端事件（可重複）")
    parser.add_argument("-v", "--verbose", action="store_true", help="顯示詳細日誌")
    return parser.parse_args(argv)


def _log_event(name: str):
    def listener(payload: dict) -> None:
        logger.info(f"📨 遠端事件 {name}: {json.dumps(payload, ensure_ascii=False)}")

    return listener


async def run(args: argparse.Namespace) -> int:
    """連線、載入 agent 並持續運行直到中斷"""
    if not args.remote_functions or not args.utility_library:
        logger.error("❌ 請指定 --remote-functions 與 --utility-library")
        return 2

    try:
        remote_functions, utility_source = load_payload_sources(args.remote_functions, args.utility_library)
    except FileNotFoundError:
        return 2

    inspector = InspectorConnection(endpoint=args.cdp_endpoint)
    try:
        await inspector.connect(args.ws_url)
    except Exception as e:
        logger.error(f"❌ 無法連接到 Chrome: {e}")
        logger.error("   啟動參數: chrome --remote-debugging-port=9222 --user-data-dir=/tmp/chrome_debug")
        return 1

    agent = RemoteAgent(inspector, remote_functions, utility_source, experimental=args.experimental)
    for name in args.event:
        agent.on(name, _log_event(name))

    try:
        await inspector.enable_domains()
        loaded = agent.load()
        await inspector.reload()
        await loaded

        for method in args.call:
            try:
                response = await agent.call(method)
                logger.info(f"📤 {method}: {truncate_string(json.dumps(response.get('result', {})), 500)}")
            except BridgeError as e:
                logger.error(f"❌ {method} 失敗: {e.message} {e.payload or ''}")

        logger.info("🌐 Bridge 運行中，按 Ctrl+C 結束")
        await asyncio.Event().wait()
    except BridgeError as e:
        logger.error(f"❌ 載入失敗: {e.message} {e.payload or ''}")
        return 1
    finally:
        agent.unload()
        await inspector.close()

    return 0


def main() -> int:
    """主函式"""
    args = parse_args()
    setup_logging(console_log_level=logging.DEBUG if args.verbose else logging.INFO)

    logger.info("🚀 live-bridge 啟動")
    logger.info(f"   CDP Endpoint: {args.cdp_endpoint}")

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("👋 收到中斷訊號，已停止")
        return 0


if __name__ == "__main__":
    sys.exit(main())
