import spiceypy
import numpy as np
from typing import Union, List, Set
import logging
import os

from ..utils.time_utils import instant_to_iso

KERNELS_TO_LOAD = "KERNELS_TO_LOAD"
PATH_SYMBOLS = "PATH_SYMBOLS"
PATH_VALUES = "PATH_VALUES"


class SpiceHandler:
    """
    Thin SPICE wrapper for Earth-orientation frame queries.

    Metakernels are read into the kernel pool and their KERNELS_TO_LOAD entries
    furnished one by one with paths resolved against the project root, so
    loading never touches the process working directory and is safe off the
    event loop thread.
    """

    def __init__(self):
        self._loaded_kernels: Set[str] = set()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.logger.info("SpiceHandler instance initialized.")

    def load_metakernel(self, metakernel_path: str, project_root: str = None):
        """
        Load every kernel listed by a SPICE metakernel.

        Args:
            metakernel_path: Path to the metakernel file
            project_root: Optional root for resolving relative kernel paths.
                         If not provided, relative paths are left to SPICE
                         (current working directory).
        """
        if metakernel_path in self._loaded_kernels:
            self.logger.debug(f"Metakernel already loaded: {metakernel_path}")
            return

        try:
            entries = self._read_metakernel_entries(metakernel_path)
        except spiceypy.utils.exceptions.SpiceyError as e:
            self.logger.error(f"SPICE error reading metakernel {metakernel_path}: {e}")
            raise

        kernel_paths = [self._resolve_path(entry, project_root) for entry in entries]
        self.load_kernel(kernel_paths)
        self._loaded_kernels.add(metakernel_path)
        self.logger.info(f"Loaded SPICE metakernel: {metakernel_path} ({len(kernel_paths)} kernels)")

    def load_kernel(self, kernel_path: Union[str, List[str]]):
        """Load individual kernel(s)."""
        if isinstance(kernel_path, str):
            kernel_paths = [kernel_path]
        else:
            kernel_paths = kernel_path

        for path in kernel_paths:
            if path not in self._loaded_kernels:
                try:
                    spiceypy.furnsh(path)
                    self._loaded_kernels.add(path)
                    self.logger.info(f"Loaded SPICE kernel: {path}")
                except spiceypy.utils.exceptions.SpiceyError as e:
                    self.logger.error(f"SPICE error loading kernel {path}: {e}")
                    raise
            else:
                self.logger.debug(f"Kernel already loaded, skipping: {path}")

    def _read_metakernel_entries(self, metakernel_path: str) -> List[str]:
        """Read KERNELS_TO_LOAD from a metakernel with PATH_SYMBOLS substituted."""
        spiceypy.ldpool(metakernel_path)
        try:
            entries = self._pool_strings(KERNELS_TO_LOAD)
            symbols = self._pool_strings(PATH_SYMBOLS)
            values = self._pool_strings(PATH_VALUES)
        finally:
            for name in (KERNELS_TO_LOAD, PATH_SYMBOLS, PATH_VALUES):
                spiceypy.dvpool(name)

        # Longer symbols first; one symbol may be a prefix of another
        for symbol, value in sorted(zip(symbols, values), key=lambda sv: -len(sv[0])):
            entries = [entry.replace(f"${symbol}", value) for entry in entries]
        return entries

    @staticmethod
    def _pool_strings(name: str) -> List[str]:
        """All strings of a kernel pool variable, joining '+' continuations."""
        strings = []
        while True:
            try:
                value, _ = spiceypy.stpool(name, len(strings), "+")
            except spiceypy.utils.exceptions.NotFoundError:
                return strings
            strings.append(value)

    @staticmethod
    def _resolve_path(kernel_path: str, project_root: str = None) -> str:
        if project_root and not os.path.isabs(kernel_path):
            return os.path.join(project_root, kernel_path)
        return kernel_path

    def utc_to_et(self, utc_time_str: str) -> float:
        """Convert UTC time string to ephemeris time."""
        try:
            et = spiceypy.utc2et(utc_time_str)
            self.logger.debug(f"Converted UTC '{utc_time_str}' to ET {et}.")
            return et
        except spiceypy.utils.exceptions.SpiceyError as e:
            self.logger.error(f"SPICE error converting UTC '{utc_time_str}' to ET: {e}")
            raise

    def instant_to_et(self, instant: float) -> float:
        """Convert epoch milliseconds (UTC) to ephemeris time."""
        return self.utc_to_et(instant_to_iso(instant))

    def get_frame_rotation(self, from_frame: str, to_frame: str, et: float) -> np.ndarray:
        """Get the 3x3 matrix transforming from_frame coordinates to to_frame coordinates."""
        try:
            rotation_matrix = spiceypy.pxform(from_frame, to_frame, et)
            self.logger.debug(f"pxform from '{from_frame}' to '{to_frame}' at ET {et}")
            return np.array(rotation_matrix)
        except spiceypy.utils.exceptions.SpiceyError as e:
            self.logger.error(
                f"SPICE error getting rotation for from_frame='{from_frame}', "
                f"to_frame='{to_frame}', et={et}: {e}"
            )
            raise
