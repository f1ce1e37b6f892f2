import pytest

from resmon.cpu import (
    CpuData,
    get_cpu_freq,
    get_cpu_usage,
    get_proc_stat,
    get_temperature,
    parse_lscpu,
    parse_proc_stat_line,
)
from resmon.util import ResourceError

PROC_STAT = (
    "cpu  0 0 0 9 0 0 0 0 0 0\n"
    "cpu0 0 0 0 4 0 0 0 0 0 0\n"
    "cpu1 1 0 0 5 0 0 0 0 0 0\n"
    "intr 12345 0 0\n"
    "ctxt 999\n"
)

LSCPU = """Architecture:            x86_64
  CPU op-mode(s):        32-bit, 64-bit
CPU(s):                  8
  On-line CPU(s) list:   0-7
Vendor ID:               GenuineIntel
  Model name:            Example CPU Model
    Core(s) per socket:  4
Virtualization:          VT-x
  CPU max MHz:           4200.0000
"""


def test_parse_proc_stat_line_idle_only():
    assert parse_proc_stat_line("cpu0 0 0 0 7 0 0 0 0 0 0") == (7, 7)


def test_parse_proc_stat_line_user_only():
    assert parse_proc_stat_line("cpu 1 0 0 0 0 0 0 0 0 0") == (0, 1)


def test_parse_proc_stat_line_accepts_bytes():
    assert parse_proc_stat_line(b"cpu3 0 0 0 0 2 0 0 0 0 0") == (2, 2)


def test_parse_proc_stat_line_idle_not_above_total():
    idle, total = parse_proc_stat_line("cpu  12 3 45 678 9 0 1 0 0 0")
    assert 0 <= idle <= total


def test_parse_proc_stat_line_rejects_other_lines():
    with pytest.raises(ResourceError):
        parse_proc_stat_line("intr 12345 0 0")


def test_parse_proc_stat_line_missing_idle():
    with pytest.raises(ResourceError, match="idle"):
        parse_proc_stat_line("cpu 5 6")


@pytest.fixture
def proc_stat(tmp_path):
    path = tmp_path / "stat"
    path.write_text(PROC_STAT)
    return path


def test_get_proc_stat_total_line(proc_stat):
    assert get_proc_stat(None, proc_stat) == "cpu  0 0 0 9 0 0 0 0 0 0"


def test_get_proc_stat_core_line(proc_stat):
    assert get_proc_stat(1, proc_stat) == "cpu1 1 0 0 5 0 0 0 0 0 0"


def test_get_proc_stat_core_out_of_range(proc_stat):
    with pytest.raises(ResourceError, match="greater than amount of cores"):
        get_proc_stat(2, proc_stat)


def test_get_proc_stat_missing_file(tmp_path):
    with pytest.raises(ResourceError):
        get_proc_stat(None, tmp_path / "missing")


def test_get_cpu_usage(proc_stat):
    assert get_cpu_usage(None, proc_stat) == (9, 9)
    assert get_cpu_usage(0, proc_stat) == (4, 4)


def test_get_cpu_freq(tmp_path):
    freq_dir = tmp_path / "cpu0" / "cpufreq"
    freq_dir.mkdir(parents=True)
    (freq_dir / "scaling_cur_freq").write_text("2400000\n")
    assert get_cpu_freq(0, tmp_path) == 2_400_000_000


def test_get_cpu_freq_missing(tmp_path):
    with pytest.raises(ResourceError, match="core 3"):
        get_cpu_freq(3, tmp_path)


def test_get_cpu_freq_unparsable(tmp_path):
    freq_dir = tmp_path / "cpu0" / "cpufreq"
    freq_dir.mkdir(parents=True)
    (freq_dir / "scaling_cur_freq").write_text("fast\n")
    with pytest.raises(ResourceError):
        get_cpu_freq(0, tmp_path)


def _hwmon(root, index, name, millidegrees):
    path = root / f"hwmon{index}"
    path.mkdir(parents=True)
    (path / "name").write_text(name + "\n")
    (path / "temp1_input").write_text(f"{millidegrees}\n")


def _thermal(root, index, kind, millidegrees):
    path = root / f"thermal_zone{index}"
    path.mkdir(parents=True)
    (path / "type").write_text(kind + "\n")
    (path / "temp").write_text(f"{millidegrees}\n")


def test_temperature_prefers_k10temp_over_coretemp(tmp_path):
    hwmon, thermal = tmp_path / "hwmon", tmp_path / "thermal"
    thermal.mkdir()
    _hwmon(hwmon, 0, "coretemp", 50000)
    _hwmon(hwmon, 1, "k10temp", 45000)
    assert get_temperature(hwmon, thermal) * 1000 == 45000


def test_temperature_from_thermal_zone(tmp_path):
    hwmon, thermal = tmp_path / "hwmon", tmp_path / "thermal"
    hwmon.mkdir()
    _thermal(thermal, 0, "acpitz", 30000)
    _thermal(thermal, 1, "x86_pkg_temp", 61000)
    assert get_temperature(hwmon, thermal) * 1000 == 61000


def test_temperature_ignores_unknown_sensors(tmp_path):
    hwmon, thermal = tmp_path / "hwmon", tmp_path / "thermal"
    _hwmon(hwmon, 0, "nvme", 40000)
    _thermal(thermal, 0, "iwlwifi", 40000)
    with pytest.raises(ResourceError, match="no CPU temperature sensor"):
        get_temperature(hwmon, thermal)


def test_parse_lscpu_fields():
    info = parse_lscpu(LSCPU)
    assert info.vendor_id == "GenuineIntel"
    assert info.model_name == "Example CPU Model"
    assert info.architecture == "x86_64"
    assert info.logical_cpus == 8
    assert info.sockets is None
    assert info.physical_cpus == 4
    assert info.virtualization == "VT-x"
    assert info.max_speed == pytest.approx(4.2e9)


def test_parse_lscpu_unparsable_and_missing():
    info = parse_lscpu("CPU(s): many\nArchitecture: aarch64\n")
    assert info.logical_cpus is None
    assert info.max_speed is None
    assert info.vendor_id is None
    assert info.architecture == "aarch64"


def test_cpu_data_gather_without_cpus():
    data = CpuData.gather(0)
    assert data.new_thread_usages == []
    assert data.frequencies == []
    idle, total = data.new_total_usage
    assert 0 <= idle <= total


def test_cpu_data_gather_lengths():
    data = CpuData.gather(2)
    assert len(data.new_thread_usages) == 2
    assert len(data.frequencies) == 2
    assert all(0 <= idle <= total for idle, total in data.new_thread_usages)