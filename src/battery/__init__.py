from src.battery.systems import BatterySystem, MechanicalSystem, PowerSystem
from src.battery.sinks import SimpleMotionPowerSink, SimpleDevicePowerSink

__all__ = [
    "BatterySystem",
    "MechanicalSystem",
    "PowerSystem",
    "SimpleMotionPowerSink",
    "SimpleDevicePowerSink",
]
