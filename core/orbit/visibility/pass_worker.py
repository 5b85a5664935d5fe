"""
可取消的流式过境计算进程

每个请求在独立进程中运行PassPredictionEngine.iter_messages，消息经队列回传：
- 同一时刻只有一个"活动"计算（代）
- 新请求提交时直接终止旧进程（硬终止，不做协作取消）
- 每代使用新的队列，并在消息上标注代号，旧代的消息一律丢弃
- 部分结果在接收端合并并按升起时间排序
"""

import logging
import multiprocessing
import time
from queue import Empty
from typing import Callable, List, Optional

from core.models.pass_models import (
    Pass,
    PassRequest,
    PartialMessage,
    ProgressMessage,
    ResultMessage,
)
from .pass_predictor import PassPredictionEngine, PredictorConfig

logger = logging.getLogger(__name__)

# 终止后等待进程退出的时间（秒）
TERMINATE_JOIN_TIMEOUT = 1.0


def _run_worker(request: PassRequest, generation: int, queue, config: Optional[PredictorConfig]):
    """子进程入口：转发引擎产出的每条消息"""
    engine = PassPredictionEngine(config)
    for message in engine.iter_messages(request):
        queue.put((generation, message))


class PassWorker:
    """
    过境计算进程管理器

    Attributes:
        on_progress: 进度回调 (percent)
        on_partial: 部分结果回调 (已合并排序的全部部分结果)
        on_result: 最终结果回调 (按升起时间排序)
    """

    def __init__(self, config: Optional[PredictorConfig] = None,
                 start_method: Optional[str] = None):
        """
        Args:
            config: 引擎参数
            start_method: multiprocessing启动方式（None为平台默认）
        """
        self.config = config
        self._context = multiprocessing.get_context(start_method)
        self._process = None
        self._queue = None
        self._generation = 0
        self._computing = False
        self._partial: List[Pass] = []
        self._result: Optional[List[Pass]] = None

        self.on_progress: Optional[Callable[[float], None]] = None
        self.on_partial: Optional[Callable[[List[Pass]], None]] = None
        self.on_result: Optional[Callable[[List[Pass]], None]] = None

    @property
    def generation(self) -> int:
        """当前活动代号"""
        return self._generation

    def is_computing(self) -> bool:
        return self._computing

    def compute(self, request: PassRequest) -> int:
        """
        提交请求；仍在运行的旧计算被直接终止

        Returns:
            int: 新计算的代号
        """
        if self._computing:
            logger.info(f"Superseding pass computation generation {self._generation}")
        self._terminate()

        self._generation += 1
        self._partial = []
        self._result = None
        self._queue = self._context.Queue()
        self._process = self._context.Process(
            target=_run_worker,
            args=(request, self._generation, self._queue, self.config),
            name=f"pass-worker-{self._generation}",
            daemon=True,
        )
        self._process.start()
        self._computing = True
        logger.debug(f"Started pass computation generation {self._generation} "
                     f"({len(request.targets)} targets)")
        return self._generation

    def poll(self, timeout: float = 0.0) -> int:
        """
        处理已到达的消息并触发回调

        Args:
            timeout: 等待第一条消息的最长时间（秒）

        Returns:
            int: 处理的（当前代）消息数
        """
        if self._queue is None:
            return 0

        handled = 0
        block = timeout > 0
        while self._queue is not None:
            try:
                generation, message = self._queue.get(block=block, timeout=timeout if block else None)
            except Empty:
                break
            block = False
            if self._handle(generation, message):
                handled += 1

        self._check_process_exit()
        return handled

    def _handle(self, generation: int, message) -> bool:
        if generation != self._generation or not self._computing:
            logger.debug(f"Dropped stale message from generation {generation}")
            return False

        if isinstance(message, ProgressMessage):
            if self.on_progress:
                self.on_progress(message.percent)
        elif isinstance(message, PartialMessage):
            self._partial.extend(message.passes)
            self._partial.sort(key=lambda p: p.aos_epoch)
            if self.on_partial:
                self.on_partial(list(self._partial))
        elif isinstance(message, ResultMessage):
            self._computing = False
            self._partial = []
            self._result = list(message.passes)
            self._release()
            if self.on_result:
                self.on_result(list(self._result))
        return True

    def _check_process_exit(self):
        """进程未发送结果即退出（崩溃）时结束本代"""
        if not self._computing or self._process is None or self._process.is_alive():
            return
        while self._computing:
            try:
                generation, message = self._queue.get_nowait()
            except Empty:
                break
            self._handle(generation, message)

        if self._computing:
            logger.error(f"Pass computation generation {self._generation} exited "
                         f"without result (exit code {self._process.exitcode})")
            self._computing = False
            self._release()

    def wait(self, timeout: Optional[float] = None) -> Optional[List[Pass]]:
        """
        阻塞直到当前代给出结果

        Returns:
            最终结果，超时或计算失败时返回None
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while self._computing:
            remaining = 0.1 if deadline is None else min(0.1, deadline - time.monotonic())
            if remaining <= 0:
                break
            self.poll(timeout=remaining)
        return None if self._computing else self._result

    def cancel(self):
        """取消当前计算，不会再有任何该代消息送达"""
        if self._computing:
            logger.info(f"Cancelled pass computation generation {self._generation}")
        self._terminate()
        self._generation += 1
        self._partial = []

    def _terminate(self):
        if self._process is not None and self._process.is_alive():
            self._process.terminate()
            self._process.join(TERMINATE_JOIN_TIMEOUT)
        self._computing = False
        self._release()

    def _release(self):
        """丢弃本代的进程与队列"""
        if self._process is not None and not self._process.is_alive():
            self._process.join(TERMINATE_JOIN_TIMEOUT)
        self._process = None
        if self._queue is not None:
            self._queue.close()
            self._queue.cancel_join_thread()
            self._queue = None

    def dispose(self):
        self.cancel()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.dispose()
        return False
