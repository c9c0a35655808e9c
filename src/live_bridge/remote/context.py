"""
遠端 Context 與心跳

RemoteContext 保存注入後取得的 object handle；
Heartbeat 在 context 有效期間定期送出 keepAlive。
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from live_bridge.config import KEEPALIVE_INTERVAL

logger = logging.getLogger(__name__)


class BridgeState(Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"


@dataclass
class RemoteContext:
    """注入頁面的 command / utility namespace handle"""
    command_handle: str | None = None
    utility_handle: str | None = None
    heartbeat_active: bool = False
    state: BridgeState = BridgeState.UNLOADED

    def invalidate(self) -> None:
        """頁面開始導航，handle 失效直到下一次載入完成"""
        self.command_handle = None
        self.utility_handle = None
        if self.state is not BridgeState.UNLOADED:
            self.state = BridgeState.LOADING

    def reset(self) -> None:
        self.command_handle = None
        self.utility_handle = None
        self.state = BridgeState.UNLOADED


class Heartbeat:
    """
    keepAlive 計時器

    同一時間最多只有一個計時器；start() 會先停止既有的計時器。
    每次心跳不等待結果，失敗只記錄日誌。
    """

    def __init__(
        self,
        context: RemoteContext,
        beat: Callable[[], Awaitable[Any]],
        interval: float = KEEPALIVE_INTERVAL,
    ) -> None:
        self._context = context
        self._beat = beat
        self._interval = interval
        self._task: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def is_active(self) -> bool:
        return self._task is not None

    def start(self) -> None:
        """啟動心跳（重複呼叫會重新開始）"""
        self.stop()
        self._task = asyncio.get_running_loop().create_task(self._run())
        self._context.heartbeat_active = True
        logger.debug(f"💓 心跳已啟動，間隔 {self._interval}s")

    def stop(self) -> None:
        """停止心跳，可重複呼叫"""
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.debug("心跳已停止")

        for task in self._inflight:
            task.cancel()
        self._inflight.clear()
        self._context.heartbeat_active = False

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            task = asyncio.ensure_future(self._beat())
            self._inflight.add(task)
            task.add_done_callback(self._on_beat_done)

    def _on_beat_done(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"keepAlive 失敗: {error!r}")
