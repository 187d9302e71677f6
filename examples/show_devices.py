# examples/show_devices.py
import sys

print("Python:", sys.version)

try:
    from aplusb.opencl.device import list_devices, select_best_device
    from aplusb.opencl.driver import load_driver

    driver = load_driver()
    print("Driver:", driver)
    rows = list_devices(driver)
    print("OpenCL devices:", len(rows))
    for r in rows:
        mark = "*" if r.selected else " "
        print(f"  {mark} Platform {r.platform_index} ({r.platform_name}) Device {r.device_index}: {r.name} [{r.kind}]")
    best = select_best_device(driver)
    print("aplusb would run on:", getattr(best, "name", None))
except Exception as e:
    print("OpenCL error:", e)
