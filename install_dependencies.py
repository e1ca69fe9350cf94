#!/usr/bin/env python3
"""
sattraj Dependency Installer

Creates a virtual environment, installs the package and downloads the SPICE
kernels needed for high-precision Earth orientation (ITRF93 <-> J2000).

Usage:
    python install_dependencies.py [--skip-spice] [--venv-name NAME]

Options:
    --skip-spice    Skip downloading SPICE kernels
    --venv-name     Name of virtual environment folder (default: .venv)
"""
import subprocess
import platform
import shutil
import sys
import venv
import urllib.request
from pathlib import Path


# =============================================================================
# SPICE Download Configuration
# =============================================================================

GENERIC_KERNELS_URL = 'https://naif.jpl.nasa.gov/pub/naif/generic_kernels/'

# (remote path under generic_kernels/, local path under data/spice_kernels/generic/)
EARTH_ORIENTATION_KERNELS = [
    ('lsk/naif0012.tls', 'lsk/naif0012.tls'),
    ('pck/pck00011.tpc', 'pck/pck00011.tpc'),
    ('pck/earth_latest_high_prec.bpc', 'pck/earth_latest_high_prec.bpc'),
    ('fk/planets/earth_assoc_itrf93.tf', 'fk/earth_assoc_itrf93.tf'),
]

# Refreshed daily upstream; always re-download
VOLATILE_KERNELS = {'earth_latest_high_prec.bpc'}


def create_venv(venv_path):
    """
    Create a virtual environment.

    Args:
        venv_path: Path where to create the venv
    """
    print(f"Creating virtual environment at: {venv_path}")
    venv.create(venv_path, with_pip=True)
    print("Virtual environment created successfully.")


def get_venv_python(venv_path):
    """
    Get the path to the Python executable in the venv.

    Args:
        venv_path: Path to the virtual environment

    Returns:
        Path: Path to the Python executable
    """
    if platform.system() == 'Windows':
        return venv_path / 'Scripts' / 'python.exe'
    return venv_path / 'bin' / 'python'


def run_pip_install(python_exe, args, description):
    """
    Run pip install with given arguments using the venv Python.

    Args:
        python_exe: Path to Python executable
        args: List of arguments to pass to pip install
        description: Description of what's being installed (for logging)
    """
    cmd = [str(python_exe), '-m', 'pip', 'install'] + args
    print(f"Running: {' '.join(cmd)}\n")

    result = subprocess.run(cmd)

    if result.returncode != 0:
        print(f"\nError: Failed to install {description}")
        sys.exit(1)


# =============================================================================
# SPICE Download Functions
# =============================================================================

def download_file_with_progress(url, dest_path, description=None):
    """
    Download a file with progress indicator.

    Args:
        url: URL to download from
        dest_path: Path where to save the file
        description: Optional description for progress display

    Returns:
        bool: True if successful, False otherwise
    """
    desc = description or dest_path.name

    def progress_hook(block_num, block_size, total_size):
        downloaded = block_num * block_size
        mb_downloaded = downloaded / (1024 * 1024)
        if total_size > 0:
            percent = min(100, (downloaded / total_size) * 100)
            print(f"\r  {desc}: {percent:.1f}% ({mb_downloaded:.1f} MB)", end='', flush=True)
        else:
            print(f"\r  {desc}: {mb_downloaded:.1f} MB downloaded", end='', flush=True)

    try:
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        urllib.request.urlretrieve(url, dest_path, reporthook=progress_hook)
        print()
        return True
    except Exception as e:
        print(f"\n  Error downloading {desc}: {e}")
        return False


def download_earth_orientation_kernels(project_root):
    """
    Download leap seconds, Earth PCK and ITRF93 frame kernels.

    Args:
        project_root: Path to project root directory

    Returns:
        bool: True if all downloads successful
    """
    kernel_dir = project_root / 'data' / 'spice_kernels' / 'generic'

    all_success = True
    for remote_path, local_path in EARTH_ORIENTATION_KERNELS:
        dest_path = kernel_dir / local_path
        name = dest_path.name

        if dest_path.exists() and dest_path.stat().st_size > 0 and name not in VOLATILE_KERNELS:
            print(f"  {name}: Already exists, skipping")
            continue

        if not download_file_with_progress(GENERIC_KERNELS_URL + remote_path, dest_path, name):
            all_success = False

    return all_success


# =============================================================================
# Argument Parsing
# =============================================================================

def parse_args():
    """Parse command line arguments."""
    args = sys.argv[1:]
    skip_spice = '--skip-spice' in args

    venv_name = '.venv'
    if '--venv-name' in args:
        idx = args.index('--venv-name')
        if idx + 1 < len(args):
            venv_name = args[idx + 1]

    return venv_name, skip_spice


def main():
    print("=" * 60)
    print("sattraj Dependency Installer")
    print("=" * 60)
    print()

    venv_name, skip_spice = parse_args()

    project_root = Path(__file__).parent.resolve()
    venv_path = project_root / venv_name

    if not (project_root / 'pyproject.toml').exists():
        print(f"Error: pyproject.toml not found in {project_root}")
        sys.exit(1)

    # Step 1: Create virtual environment
    print("-" * 60)
    print("Step 1: Setting up virtual environment")
    print("-" * 60)

    if venv_path.exists():
        print(f"Virtual environment already exists at: {venv_path}")
        response = input("Recreate it? [y/N]: ").strip().lower()
        if response == 'y':
            print("Removing existing virtual environment...")
            shutil.rmtree(venv_path)
            create_venv(venv_path)
        else:
            print("Using existing virtual environment.")
    else:
        create_venv(venv_path)

    python_exe = get_venv_python(venv_path)
    if not python_exe.exists():
        print(f"Error: Python executable not found at {python_exe}")
        sys.exit(1)

    print()

    # Step 2: Upgrade pip
    print("-" * 60)
    print("Step 2: Upgrading pip")
    print("-" * 60)
    run_pip_install(python_exe, ['--upgrade', 'pip'], "pip upgrade")
    print()

    # Step 3: Download Earth orientation kernels
    print("-" * 60)
    print("Step 3: Downloading Earth orientation kernels")
    print("-" * 60)
    if skip_spice:
        print("Skipped (--skip-spice flag specified)")
        print("The analytic earth_rotation provider works without kernels.")
    else:
        if not download_earth_orientation_kernels(project_root):
            print("\nWarning: Some SPICE kernels could not be downloaded.")
            print("Configurations using the spice frame provider will fail to prime.")
            print("You can try again later by re-running this script.")
    print()

    # Step 4: Install package
    print("-" * 60)
    print("Step 4: Installing sattraj")
    print("-" * 60)
    run_pip_install(python_exe, ['-e', f"{project_root}[test]"], "sattraj")
    print()

    print("=" * 60)
    print("Installation Complete!")
    print("=" * 60)
    print()

    if platform.system() == 'Windows':
        activate_cmd = f"{venv_name}\\Scripts\\activate"
    else:
        activate_cmd = f"source {venv_name}/bin/activate"

    print("To activate the virtual environment:")
    print(f"  {activate_cmd}")
    print()
    print("Then replay the demo telemetry:")
    print("  python examples/01_replay_telemetry.py")
    print()


if __name__ == '__main__':
    main()
