"""
配置热重载

watchdog 观察配置文件所在目录，文件内容变化后在调用方事件循环中
依次执行注册的重载回调（同步函数或协程函数）。
"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path

import aiofiles
from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .settings import get_config_file_path

ReloadCallback = Callable[[], Awaitable[None] | None]


class ConfigFileHandler(FileSystemEventHandler):
    """只关心目标文件的事件处理器，运行在 watchdog 线程中

    同一次保存常会触发多个事件，按文件修改时间去重。
    """

    def __init__(self, config_path: Path, on_change: Callable[[], None]):
        self.target = config_path.resolve()
        self.on_change = on_change
        self._seen_mtime: float | None = None

    def on_modified(self, event: FileSystemEvent) -> None:
        self._dispatch(event, event.src_path)

    def on_created(self, event: FileSystemEvent) -> None:
        self._dispatch(event, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # 先写临时文件再改名覆盖的保存方式
        self._dispatch(event, event.dest_path)

    def _dispatch(self, event: FileSystemEvent, path: str) -> None:
        if event.is_directory or Path(path).resolve() != self.target:
            return
        try:
            mtime = self.target.stat().st_mtime
        except OSError:
            return
        if mtime == self._seen_mtime:
            return

        self._seen_mtime = mtime
        logger.info(f"检测到配置文件变化: {self.target}")
        self.on_change()


class ConfigWatcher:
    """配置文件监听器

    Args:
        config_path: 配置文件路径，默认取 ``CONFIG_PATH`` 环境变量
        debounce: 收到事件后等待写入完成的时间（秒）
    """

    def __init__(self, config_path: str | None = None, debounce: float = 0.1):
        self.config_path = Path(config_path or get_config_file_path()).resolve()
        self.debounce = debounce
        self._callbacks: list[ReloadCallback] = []
        self._observer: Observer | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def add_reload_callback(self, callback: ReloadCallback) -> None:
        self._callbacks.append(callback)

    async def start_watching(self) -> None:
        if self.is_running:
            return
        if not self.config_path.exists():
            logger.warning(f"配置文件不存在，不启用热重载: {self.config_path}")
            return

        self._loop = asyncio.get_running_loop()
        observer = Observer()
        observer.schedule(
            ConfigFileHandler(self.config_path, self._schedule_reload),
            str(self.config_path.parent),
            recursive=False,
        )
        observer.start()
        self._observer = observer
        logger.info(f"配置热重载已启用: {self.config_path}")

    def stop_watching(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join()
        self._loop = None
        logger.info("配置热重载已停止")

    def _schedule_reload(self) -> None:
        # watchdog 线程 -> 事件循环
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.warning("事件循环已关闭，忽略配置变化")
            return
        asyncio.run_coroutine_threadsafe(self._process_config_change(), loop)

    async def _process_config_change(self) -> None:
        await asyncio.sleep(self.debounce)

        if not await self._is_valid_json():
            return

        for callback in self._callbacks:
            name = getattr(callback, "__name__", repr(callback))
            try:
                result = callback()
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                # 单个回调失败不影响其余回调
                logger.error(f"配置重载回调失败 - Callback: {name}, Error: {e}")
            else:
                logger.debug(f"配置重载回调完成 - Callback: {name}")

        logger.info(f"配置已重载: {self.config_path}")

    async def _is_valid_json(self) -> bool:
        try:
            async with aiofiles.open(self.config_path, encoding="utf-8") as f:
                json.loads(await f.read())
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"配置文件无效，保留当前配置: {e}")
            return False
        return True

    async def __aenter__(self) -> "ConfigWatcher":
        await self.start_watching()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop_watching()
