import pytest

from src.platform.database.asyncpg_setting import compute_pool_bounds


@pytest.mark.unit
class TestComputePoolBounds:
    @pytest.mark.parametrize(
        'cpu_count,expected',
        [
            (1, (1, 3)),
            (4, (2, 9)),
            (8, (4, 17)),
            (64, (8, 32)),
        ],
    )
    def test_scales_with_cores_within_ceiling(self, cpu_count, expected):
        assert compute_pool_bounds(cpu_count=cpu_count, floor=2, ceiling=32) == expected

    def test_floor_wins_on_small_hosts(self):
        assert compute_pool_bounds(cpu_count=1, floor=5, ceiling=32) == (1, 5)

    def test_unknown_cpu_count_is_treated_as_one_core(self):
        assert compute_pool_bounds(cpu_count=None, floor=2, ceiling=32) == (1, 3)
