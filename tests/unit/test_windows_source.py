import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from hwscope_telemetry.windows import WindowsSource


class FakeCim:
    def __init__(self, tables):
        self.tables = tables
        self.queries = []

    def query(self, class_name, fields, where=None):
        self.queries.append((class_name, where))
        return list(self.tables.get(class_name, []))


class FakeRunner:
    def __init__(self, output=None):
        self.output = output

    def run(self, argv, timeout_s=None):
        return self.output


TABLES = {
    "Win32_Processor": [
        {"Name": "Intel(R) Core(TM) i7-8700", "Caption": "Intel64 Family 6 Model 158 Stepping 10",
         "L2CacheSize": 1536, "L3CacheSize": 12288},
    ],
    "Win32_VideoController": [
        {"Name": "NVIDIA GeForce RTX 3070", "AdapterCompatibility": "NVIDIA", "AdapterRAM": -1048576,
         "PNPDeviceID": "PCI\\VEN_10DE&DEV_2484"},
        {"Name": "Microsoft Basic Display Adapter", "AdapterCompatibility": "(Standard display types)",
         "AdapterRAM": None, "PNPDeviceID": "ROOT\\BASICDISPLAY"},
    ],
    "Win32_PhysicalMemory": [
        {"Capacity": 17179869184, "Speed": 3200, "ConfiguredClockSpeed": 2933, "SMBIOSMemoryType": 26,
         "MemoryType": 0, "FormFactor": 8, "Manufacturer": "Kingston ", "PartNumber": "KF3200C16D4/16GX ",
         "SerialNumber": "1A2B3C4D"},
        {"Capacity": 0, "Speed": None, "SMBIOSMemoryType": 2, "FormFactor": 12},
        {"Capacity": 8589934592, "Speed": 2400, "SMBIOSMemoryType": 0, "MemoryType": 24, "FormFactor": 12},
    ],
    "Win32_BaseBoard": [{"Manufacturer": "ASUSTeK", "Product": "PRIME Z390-A", "Version": "Rev X.0x",
                         "SerialNumber": "190312345"}],
    "Win32_BIOS": [{"Manufacturer": "American Megatrends Inc.", "SMBIOSBIOSVersion": "2808",
                    "ReleaseDate": "20230915000000.000000+000"}],
    "Win32_NetworkAdapterConfiguration": [{"MACAddress": "A4:BB:6D:12:34:56"}, {"MACAddress": None}],
    "Win32_SoundDevice": [{"Name": "Realtek High Definition Audio", "Manufacturer": "Realtek", "Status": "OK"}],
    "Win32_PnPEntity": [
        {"Name": "USB Root Hub (USB 3.0)", "Manufacturer": "(Standard USB HUBs)", "PNPDeviceID": "USB\\ROOT_HUB30\\4&1"},
        {"Name": "USB Input Device", "Manufacturer": None, "PNPDeviceID": "USB\\VID_046D&PID_C52B&MI_00\\7&2"},
    ],
    "Win32_CDROMDrive": [{"Drive": "D:", "Caption": "HL-DT-ST DVDRAM GH24NSD1", "Manufacturer": None}],
    "Win32_OperatingSystem": [{"Caption": "Microsoft Windows 11 Pro", "Version": "10.0.22631"}],
}


class WindowsSourceTests(unittest.TestCase):
    def setUp(self):
        self.cim = FakeCim(TABLES)
        self.src = WindowsSource(runner=FakeRunner("UEFI\r\n"), cim=self.cim)

    def test_processor_is_queried_once(self):
        self.assertEqual(self.src.cache_sizes(), (1536 * 1024, 12288 * 1024))
        self.assertEqual(self.src.cpu_ids(), ("6", "158", "10"))
        processor_queries = [q for q in self.cim.queries if q[0] == "Win32_Processor"]
        self.assertEqual(len(processor_queries), 1)

    def test_gpus(self):
        gpus = self.src.gpus()
        self.assertEqual(gpus[0].vendor, "NVIDIA")
        self.assertEqual(gpus[0].vram, 2**32 - 1048576)
        self.assertEqual(gpus[1].vendor, "(Standard display types)")
        self.assertEqual(gpus[1].vram, 0)

    def test_memory_layout_maps_smbios_codes(self):
        slots = self.src.memory_layout()
        self.assertEqual([s.slot for s in slots], [0, 2])
        self.assertEqual(slots[0].type, "DDR4")
        self.assertEqual(slots[0].form_factor, "DIMM")
        self.assertEqual(slots[0].clock_speed, 2933)
        self.assertEqual(slots[0].manufacturer, "Kingston")
        self.assertEqual(slots[1].type, "DDR3")
        self.assertEqual(slots[1].form_factor, "SODIMM")
        self.assertEqual(slots[1].clock_speed, 2400)

    def test_firmware(self):
        self.assertEqual(self.src.baseboard().model, "PRIME Z390-A")
        self.assertEqual(self.src.bios().release_date, "09/15/2023")

    def test_macs_only_ip_enabled(self):
        self.assertEqual(self.src.macs([]), ("A4:BB:6D:12:34:56",))
        self.assertIn(("Win32_NetworkAdapterConfiguration", "IPEnabled=True"), self.cim.queries)

    def test_usb_devices_skip_hubs(self):
        devices = self.src.usb_devices()
        self.assertEqual(len(devices), 1)
        self.assertEqual((devices[0].vendor_id, devices[0].product_id), ("046d", "c52b"))
        self.assertEqual(devices[0].vendor, "USB Device")

    def test_audio_optical_and_os(self):
        self.assertEqual(self.src.audio()[0].manufacturer, "Realtek")
        optical = self.src.optical()[0]
        self.assertEqual((optical.name, optical.vendor), ("D:", "Unknown"))
        self.assertEqual(self.src.os_identity(), ("Microsoft Windows 11 Pro", "10.0.22631"))
        self.assertTrue(self.src.uefi())

    def test_no_rows_means_no_data(self):
        src = WindowsSource(runner=FakeRunner(None), cim=FakeCim({}))
        self.assertIsNone(src.cache_sizes())
        self.assertIsNone(src.baseboard())
        self.assertIsNone(src.bios())
        self.assertIsNone(src.uefi())
        self.assertEqual(src.gpus(), ())


if __name__ == "__main__":
    unittest.main()
