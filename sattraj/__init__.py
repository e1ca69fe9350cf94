"""
sattraj: trajectory derivation for satellite telemetry.

Turns time-stamped position/attitude telemetry given in an Earth-fixed frame
into continuous-time position and inertial orientation interpolants.
"""

__version__ = "1.0.0"
