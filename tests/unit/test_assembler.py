import sys
import unittest
from pathlib import Path
from unittest import mock

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from hwscope_telemetry.assembler import SnapshotAssembler
from hwscope_telemetry.context import HostContext
from hwscope_telemetry.models import (
    BaseboardInfo,
    CpuCurrentSpeed,
    CpuTemperature,
    CurrentLoad,
    GpuController,
    MemorySlot,
    NetworkInfo,
    NetworkInterface,
    StorageInfo,
)
from hwscope_telemetry.sampler import CpuStaticFacts, MemoryCounters, MetricsSample
from hwscope_telemetry.sources import HardwareSource

CONTEXT = HostContext(
    hostname="bench-01",
    fqdn="bench-01",
    boot_time=1_700_000_000.0,
    now=1_700_003_600.9,
    kernel="6.8.0-45-generic",
    os_release="#1 SMP",
    arch="x86_64",
    platform="linux",
    python_version="3.12.4",
)


class FixedSampler:
    def __init__(self):
        self.calls = []

    def sample_cpu_and_memory(self, identity=False):
        self.calls.append(identity)
        return MetricsSample(
            static=CpuStaticFacts(
                brand="Test CPU" if identity else "",
                vendor="GenuineIntel" if identity else "",
                physical_cores=4,
                cores=8,
                speed=3600.0,
                speed_max=4200.0,
            ),
            speed=CpuCurrentSpeed(avg=3600.0, min=3000.0, max=4200.0),
            load=CurrentLoad(current_load=12.5),
            memory=MemoryCounters(total=16, used=8, available=8, active=6, swaptotal=4, swapused=1),
        )


class PopulatedSource(HardwareSource):
    name = "fake"

    def __init__(self):
        self.mac_queries = []

    def cache_sizes(self):
        return 262144, 12582912

    def cpu_ids(self):
        return "6", "158", "10"

    def gpus(self):
        return (GpuController(model="GA104", vendor="NVIDIA", vram=8, bus="01:00.0"),)

    def memory_layout(self):
        return (MemorySlot(slot=0, size=16),)

    def baseboard(self):
        return BaseboardInfo(manufacturer="ASUSTeK", model="PRIME")

    def macs(self, interface_names):
        self.mac_queries.append(list(interface_names))
        return ("a4:bb:6d:12:34:56",)

    def uefi(self):
        return True

    def os_identity(self):
        return "Ubuntu 24.04 LTS", "24.04"


class ExplodingSource(HardwareSource):
    def __getattribute__(self, name):
        if name.startswith("_") or name == "name":
            return object.__getattribute__(self, name)
        raise AssertionError(f"live snapshot touched source.{name}")


class BrokenSource(HardwareSource):
    def gpus(self):
        raise ZeroDivisionError("impossible state")


class OrderedSampler(FixedSampler):
    def __init__(self, events):
        super().__init__()
        self.events = events

    def sample_cpu_and_memory(self, identity=False):
        self.events.append("settle")
        sample = super().sample_cpu_and_memory(identity)
        self.events.append("sampled")
        return sample


class RecordingSource(HardwareSource):
    def __init__(self, events):
        self.events = events

    def gpus(self):
        self.events.append("gpus")
        return None

    def memory_layout(self):
        self.events.append("memory_layout")
        return None


def _assembler(source, parallel=True):
    return SnapshotAssembler(
        sampler=FixedSampler(),
        source=source,
        context_factory=lambda: CONTEXT,
        parallel=parallel,
    )


class AssemblerTests(unittest.TestCase):
    def setUp(self):
        patches = [
            mock.patch("hwscope_telemetry.assembler.read_storage", return_value=StorageInfo()),
            mock.patch(
                "hwscope_telemetry.assembler.read_network",
                return_value=NetworkInfo(interfaces=(NetworkInterface(iface="eth0", ip4="10.0.0.2"),)),
            ),
            mock.patch("hwscope_telemetry.assembler.read_temperatures", return_value=CpuTemperature()),
            mock.patch("hwscope_telemetry.assembler.interface_names", return_value=["lo", "eth0"]),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)

    def test_stub_source_yields_complete_defaults(self):
        snap = _assembler(HardwareSource()).collect_full()
        self.assertEqual(snap.cpu.cache.l2, 0)
        self.assertEqual(snap.cpu.family, "")
        self.assertEqual(snap.cpu.brand, "Test CPU")
        self.assertEqual(snap.graphics.controllers, ())
        self.assertEqual(snap.memory.layout, ())
        self.assertEqual(snap.static_data.baseboard, BaseboardInfo())
        self.assertEqual(snap.static_data.uuid.macs, ())
        self.assertFalse(snap.static_data.os.uefi)
        self.assertEqual(snap.static_data.os.release, "#1 SMP")
        self.assertEqual(snap.static_data.os.hostname, "bench-01")
        self.assertEqual(snap.static_data.versions.python, "3.12.4")
        self.assertEqual(snap.cpu_temperature, CpuTemperature())
        self.assertEqual(snap.runtime.uptime, 3600)
        self.assertEqual(snap.runtime.current, 1_700_003_600)

    def test_source_values_flow_into_snapshot(self):
        source = PopulatedSource()
        snap = _assembler(source).collect_full()
        self.assertEqual((snap.cpu.cache.l2, snap.cpu.cache.l3), (262144, 12582912))
        self.assertEqual((snap.cpu.family, snap.cpu.model, snap.cpu.stepping), ("6", "158", "10"))
        self.assertEqual((snap.cpu.physical_cores, snap.cpu.cores), (4, 8))
        self.assertEqual(snap.cpu.speed_max, 4200.0)
        self.assertEqual(snap.graphics.controllers[0].vendor, "NVIDIA")
        self.assertEqual(snap.memory.layout[0].size, 16)
        self.assertEqual(snap.memory.swapfree, 3)
        self.assertEqual(snap.static_data.os.distro, "Ubuntu 24.04 LTS")
        self.assertEqual(snap.static_data.os.release, "24.04")
        self.assertTrue(snap.static_data.os.uefi)
        self.assertEqual(snap.static_data.uuid.macs, ("a4:bb:6d:12:34:56",))
        self.assertEqual(source.mac_queries, [["lo", "eth0"]])
        self.assertEqual(snap.network.interfaces[0].iface, "eth0")

    def test_serial_and_parallel_agree(self):
        parallel = _assembler(PopulatedSource(), parallel=True).collect_full()
        serial = _assembler(PopulatedSource(), parallel=False).collect_full()
        self.assertEqual(parallel, serial)

    def test_full_uses_identity_sampling(self):
        assembler = _assembler(HardwareSource())
        assembler.collect_full()
        assembler.collect_live()
        self.assertEqual(assembler.sampler.calls, [True, False])

    def test_live_never_touches_source(self):
        snap = _assembler(ExplodingSource()).collect_live()
        self.assertEqual(snap.memory.layout, ())
        self.assertEqual(snap.memory.total, 16)
        self.assertEqual(snap.current_load.current_load, 12.5)
        self.assertEqual(snap.runtime.uptime, 3600)

    def test_sources_run_after_cpu_sample_and_context_is_last(self):
        for parallel in (True, False):
            events = []

            def context():
                events.append("context")
                return CONTEXT

            SnapshotAssembler(
                sampler=OrderedSampler(events),
                source=RecordingSource(events),
                context_factory=context,
                parallel=parallel,
            ).collect_full()

            self.assertEqual(events[:2], ["settle", "sampled"])
            self.assertEqual(sorted(events[2:4]), ["gpus", "memory_layout"])
            self.assertEqual(events[4:], ["context"])

    def test_live_context_captured_after_sample(self):
        events = []

        def context():
            events.append("context")
            return CONTEXT

        SnapshotAssembler(sampler=OrderedSampler(events), source=HardwareSource(), context_factory=context).collect_live()
        self.assertEqual(events, ["settle", "sampled", "context"])

    def test_programmer_errors_propagate(self):
        for parallel in (True, False):
            with self.assertRaises(ZeroDivisionError):
                _assembler(BrokenSource(), parallel=parallel).collect_full()

    def test_payload_shape(self):
        payload = _assembler(PopulatedSource()).collect_full().to_payload()
        self.assertEqual(
            list(payload),
            [
                "staticData",
                "cpu",
                "cpuCurrentSpeed",
                "currentLoad",
                "cpuTemperature",
                "graphics",
                "network",
                "storage",
                "memory",
                "audio",
                "peripherals",
                "optical",
                "runtime",
            ],
        )
        self.assertEqual(payload["cpu"]["speedMax"], 4200.0)
        self.assertEqual(payload["cpu"]["physicalCores"], 4)
        self.assertEqual(payload["storage"], {"diskLayout": [], "filesystems": []})
        self.assertEqual(payload["peripherals"], {"usbDevices": []})
        self.assertEqual(payload["memory"]["layout"][0]["clockSpeed"], 0)
        self.assertEqual(payload["staticData"]["bios"]["releaseDate"], "")

        live = _assembler(PopulatedSource()).collect_live().to_payload()
        self.assertEqual(list(live), ["cpuCurrentSpeed", "currentLoad", "cpuTemperature", "memory", "runtime"])
        self.assertEqual(live["memory"]["layout"], [])


if __name__ == "__main__":
    unittest.main()
