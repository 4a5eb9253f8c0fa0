"""
Utility classes for the access log format parser
"""

from multiprocessing import cpu_count
from typing import Dict, Any, Optional, Tuple

from .config import ConfigManager
from .exceptions import LogFormatParserError
from .logging_config import get_logger

logger = get_logger(__name__)


DEFAULT_MULTIPROCESSING_CONFIG = {
    'enabled': True,
    'num_workers': None,  # None = auto-detect
    'chunk_size': 10000,
    'min_lines_for_parallel': 10000
}


class MultiprocessingConfig:
    """
    Settings for parsing large log files in worker processes.

    Values come from the 'multiprocessing' section of config.yaml.
    """

    @staticmethod
    def get_config() -> Dict[str, Any]:
        """
        Get multiprocessing configuration from config.yaml.

        Returns:
            Dictionary with enabled, num_workers, chunk_size and
            min_lines_for_parallel
        """
        try:
            config = ConfigManager().load_config()
        except LogFormatParserError as e:
            logger.warning(f"Could not load multiprocessing config: {e}, using defaults")
            return dict(DEFAULT_MULTIPROCESSING_CONFIG)

        mp_config = config.get('multiprocessing') or {}

        return {
            key: mp_config.get(key, default)
            for key, default in DEFAULT_MULTIPROCESSING_CONFIG.items()
        }

    @staticmethod
    def get_optimal_workers(
        total_items: int,
        min_items_per_worker: int = 100,
        max_workers: Optional[int] = None
    ) -> int:
        """Number of workers so that each gets at least min_items_per_worker items."""
        if max_workers is None:
            max_workers = cpu_count()

        return max(1, min(max_workers, total_items // max(1, min_items_per_worker)))

    @staticmethod
    def should_use_multiprocessing(
        total_items: int,
        config: Optional[Dict[str, Any]] = None
    ) -> bool:
        if config is None:
            config = MultiprocessingConfig.get_config()

        if not config['enabled']:
            return False

        return total_items >= config['min_lines_for_parallel']

    @staticmethod
    def get_processing_params(
        total_items: int,
        override_enabled: Optional[bool] = None,
        override_num_workers: Optional[int] = None,
        override_chunk_size: Optional[int] = None
    ) -> Tuple[bool, Optional[int], int]:
        """
        Get complete processing parameters with overrides.

        Args:
            total_items: Total number of lines to parse
            override_enabled: Override multiprocessing enabled setting
            override_num_workers: Override number of workers
            override_chunk_size: Override chunk size

        Returns:
            Tuple of (use_multiprocessing, num_workers, chunk_size)
        """
        config = MultiprocessingConfig.get_config()

        if override_enabled is not None:
            config['enabled'] = override_enabled
        num_workers = override_num_workers if override_num_workers is not None else config['num_workers']
        chunk_size = override_chunk_size if override_chunk_size is not None else config['chunk_size']

        use_mp = MultiprocessingConfig.should_use_multiprocessing(total_items, config)

        if use_mp and num_workers is None:
            num_workers = MultiprocessingConfig.get_optimal_workers(
                total_items,
                min_items_per_worker=chunk_size
            )

        return use_mp, num_workers, chunk_size
