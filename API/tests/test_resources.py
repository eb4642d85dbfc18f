import pytest

from docker_api.core.errors import EngineError, ValidationError
from docker_api.domain.resources import (
    NanoCpuEncoding,
    QuotaPeriodEncoding,
    ResourceQuota,
    get_cpu_encoding,
)


def test_quota_period_encoding():
    quota = QuotaPeriodEncoding().translate(total_cores=1, percent=0.5)

    assert quota == ResourceQuota(cpu_quota=50_000, cpu_period=100_000)
    assert quota.to_update_body() == {"CpuPeriod": 100_000, "CpuQuota": 50_000}


def test_nanocpu_encoding():
    quota = NanoCpuEncoding().translate(total_cores=1, percent=0.5)

    assert quota.nano_cpus == 500_000_000
    assert quota.to_update_body() == {"NanoCpus": 500_000_000}


def test_percent_is_a_fraction_of_all_host_cores():
    assert QuotaPeriodEncoding().translate(4, 0.5).cpu_quota == 200_000
    assert NanoCpuEncoding().translate(4, 0.5).nano_cpus == 2_000_000_000
    assert NanoCpuEncoding().translate(4, 1).nano_cpus == 4_000_000_000


def test_quota_is_rounded():
    assert QuotaPeriodEncoding().translate(3, 0.333).cpu_quota == 99_900


@pytest.mark.parametrize("percent", [0, -0.1, 1.5, float("nan")])
@pytest.mark.parametrize("encoding", [QuotaPeriodEncoding(), NanoCpuEncoding()])
def test_out_of_range_percent_is_rejected(encoding, percent):
    with pytest.raises(ValidationError):
        encoding.translate(4, percent)


def test_unusable_core_count_is_an_engine_error():
    with pytest.raises(EngineError):
        NanoCpuEncoding().translate(0, 0.5)


def test_encoding_lookup():
    assert isinstance(get_cpu_encoding("nanocpus"), NanoCpuEncoding)
    assert isinstance(get_cpu_encoding("quota"), QuotaPeriodEncoding)
    with pytest.raises(ValueError):
        get_cpu_encoding("shares")
