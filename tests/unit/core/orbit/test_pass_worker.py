"""
可取消过境计算进程测试

- 新请求取代旧请求：旧请求的结果永远不会送达
- 取消后不再有任何回调
- 部分结果在接收端合并排序
"""

import time

import pytest

from core.models import ObserverLocation, PassRequest, PassTarget
from core.orbit.visibility import PassWorker, PredictorConfig
from tests.conftest import SCENARIO_EPOCH, make_equatorial_object

WAIT_TIMEOUT = 60.0


def _request(name: str, days: float, count: int = 1) -> PassRequest:
    targets = tuple(
        PassTarget.from_object(make_equatorial_object(name=f"{name}-{i}", phase_offset_rad=0.3 * i))
        for i in range(count)
    )
    return PassRequest(
        observer=ObserverLocation(0.0, 0.0, 0.0),
        targets=targets,
        start_epoch=SCENARIO_EPOCH,
        duration_days=days,
    )


@pytest.fixture
def worker():
    w = PassWorker(PredictorConfig(flush_interval_s=0.0))
    yield w
    w.dispose()


@pytest.mark.slow
class TestPassWorker:
    """测试过境计算进程管理"""

    def test_single_request(self, worker):
        """单个请求：收到进度与最终结果"""
        progress, results = [], []
        worker.on_progress = progress.append
        worker.on_result = results.append

        generation = worker.compute(_request("B", 0.2))
        passes = worker.wait(WAIT_TIMEOUT)

        assert generation == 1
        assert passes is not None and len(passes) >= 1
        assert len(results) == 1
        assert progress[-1] == 100.0
        assert not worker.is_computing()

    def test_superseded_request_never_delivered(self, worker):
        """提交B后，A的结果永不送达"""
        results = []
        worker.on_result = results.append

        gen_a = worker.compute(_request("A", 5.0, count=20))
        gen_b = worker.compute(_request("B", 0.2))
        passes = worker.wait(WAIT_TIMEOUT)

        assert gen_b == gen_a + 1
        assert passes is not None
        assert len(results) == 1
        assert all(p.sat_name.startswith("B-") for p in results[0])

        # 之后再轮询也不会有A的消息
        time.sleep(0.2)
        worker.poll(timeout=0.1)
        assert len(results) == 1

    def test_cancel_suppresses_callbacks(self, worker):
        """取消后不再触发任何回调"""
        calls = []
        worker.on_progress = calls.append
        worker.on_partial = calls.append
        worker.on_result = calls.append

        generation = worker.compute(_request("A", 5.0, count=20))
        worker.cancel()

        assert worker.generation == generation + 1
        assert not worker.is_computing()
        assert worker.poll(timeout=0.2) == 0
        assert calls == []

    def test_partial_results_merged_sorted(self, worker):
        """部分结果在接收端合并并按升起时间排序"""
        partials = []
        worker.on_partial = partials.append

        worker.compute(_request("P", 0.2, count=3))
        final = worker.wait(WAIT_TIMEOUT)

        assert partials
        merged = partials[-1]
        assert [p.aos_epoch for p in merged] == sorted(p.aos_epoch for p in merged)
        assert len(merged) == len(final)

    def test_context_manager(self):
        with PassWorker() as w:
            w.compute(_request("C", 0.1))
        assert not w.is_computing()
