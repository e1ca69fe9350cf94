#!/usr/bin/env python3
"""
sattraj Quick Start - Installation Verification
===============================================

Run: python quickstart.py

This script verifies your installation by:
1. Checking all required Python packages are installed
2. Verifying the Earth orientation SPICE kernels exist
3. Loading the default pipeline configuration
4. Printing next steps
"""

import sys
from pathlib import Path

# Project root setup
PROJECT_ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(PROJECT_ROOT))


def print_header(title):
    """Print a formatted section header."""
    print()
    print("=" * 60)
    print(f"  {title}")
    print("=" * 60)


def print_check(name, passed, details=None):
    """Print a check result."""
    status = "[OK]" if passed else "[FAIL]"
    print(f"  {status} {name}")
    if details:
        print(f"       {details}")


def check_imports():
    """Check all required Python packages are installed."""
    print_header("Checking Python Dependencies")

    packages = [
        ("numpy", "numpy"),
        ("numpy-quaternion", "quaternion"),
        ("scipy", "scipy"),
        ("spiceypy", "spiceypy"),
        ("PyYAML", "yaml"),
        ("pandas", "pandas"),
        ("requests", "requests"),
    ]

    all_ok = True
    for name, import_name in packages:
        try:
            module = __import__(import_name)
            version = getattr(module, "__version__", "unknown")
            print_check(name, True, f"version {version}")
        except ImportError as e:
            print_check(name, False, str(e))
            all_ok = False

    return all_ok


def check_spice_kernels():
    """Check Earth orientation kernel files exist."""
    print_header("Checking SPICE Kernels")

    kernel_dir = PROJECT_ROOT / "data" / "spice_kernels"

    required_files = [
        ("naif0012.tls (leap seconds)", "generic/lsk/naif0012.tls"),
        ("pck00011.tpc (planetary constants)", "generic/pck/pck00011.tpc"),
        ("earth_latest_high_prec.bpc (Earth orientation)", "generic/pck/earth_latest_high_prec.bpc"),
        ("earth_assoc_itrf93.tf (ITRF93 frame)", "generic/fk/earth_assoc_itrf93.tf"),
    ]

    all_ok = True
    for name, rel_path in required_files:
        full_path = kernel_dir / rel_path
        if full_path.exists():
            size_mb = full_path.stat().st_size / (1024 * 1024)
            print_check(name, True, f"{size_mb:.1f} MB")
        else:
            print_check(name, False, f"Not found: {rel_path}")
            all_ok = False

    if not all_ok:
        print()
        print("  Note: kernels are only needed for the 'spice' frame provider.")

    return all_ok


def check_modules():
    """Check sattraj modules can be imported."""
    print_header("Checking sattraj Modules")

    modules = [
        ("Config Manager", "sattraj.config.pipeline_config_manager", "PipelineConfigManager"),
        ("Frame Rotation", "sattraj.spice", "EarthRotationAngleProvider"),
        ("Telemetry Frame", "sattraj.io.telemetry_frame", "TelemetryFrame"),
        ("Trajectory Builder", "sattraj.computation", "build_trajectory"),
        ("Trajectory Pipeline", "sattraj.computation", "TrajectoryPipeline"),
    ]

    all_ok = True
    for name, module_path, attr_name in modules:
        try:
            module = __import__(module_path, fromlist=[attr_name])
            getattr(module, attr_name)
            print_check(name, True)
        except Exception as e:
            print_check(name, False, str(e))
            all_ok = False

    return all_ok


def load_sample_config():
    """Try to load the default pipeline configuration."""
    print_header("Loading Sample Configuration")

    try:
        from sattraj.config.pipeline_config_manager import PipelineConfigManager

        config_manager = PipelineConfigManager(PROJECT_ROOT)
        config = config_manager.load_config("default.yaml")

        print_check("Configuration loaded", True)
        print(f"       Name: {config.name}")
        print(f"       Frame provider: {config.frame_provider.kind}")

        return True
    except Exception as e:
        print_check("Configuration loading", False, str(e))
        return False


def print_summary(results):
    """Print final summary and next steps."""
    print_header("Summary")

    all_passed = all(results.values())
    critical_passed = results.get("imports", False) and results.get("modules", False)

    if all_passed:
        print("  All checks passed! Your installation is ready.")
    elif critical_passed:
        print("  Core installation OK. Some optional components may be missing.")
    else:
        print("  Some critical checks failed. Please review the errors above.")
        print()
        print("  Try reinstalling:")
        print("    python install_dependencies.py")
        return

    print()
    print("-" * 60)
    print("  Next Steps:")
    print("-" * 60)
    print()
    print("  1. Replay the demo telemetry:")
    print("     python examples/01_replay_telemetry.py")
    print()
    print("  2. Use high-precision Earth orientation:")
    print("     python examples/01_replay_telemetry.py spice_eop.yaml")
    print()


def main():
    """Run all verification checks."""
    print()
    print("=" * 60)
    print("  sattraj Quick Start - Installation Verification")
    print("=" * 60)

    results = {}

    results["imports"] = check_imports()
    results["spice_kernels"] = check_spice_kernels()
    results["modules"] = check_modules()
    results["sample_config"] = load_sample_config()

    print_summary(results)


if __name__ == "__main__":
    main()
