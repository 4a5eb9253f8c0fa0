"""
Tests for core.config and core.utils modules
"""

import pytest

from core.config import ConfigManager, LOG_FORMAT_ENV, get_config_manager
from core.exceptions import ConfigurationError, FileNotFoundError
from core.utils import MultiprocessingConfig


class TestConfigManager:
    """Tests for ConfigManager"""

    def test_singleton(self):
        assert ConfigManager() is ConfigManager()
        assert get_config_manager() is ConfigManager()

    def test_find_config_next_to_input(self, sample_config, sample_apache_log):
        assert ConfigManager().find_config(str(sample_apache_log)) == sample_config

    def test_load_and_get(self, sample_config):
        config_mgr = ConfigManager()
        config = config_mgr.load_config(sample_config)

        assert config['logformat']['preset'] == 'combined'
        assert config_mgr.get('multiprocessing.chunk_size') == 500
        assert config_mgr.get('multiprocessing.missing', 'fallback') == 'fallback'

    def test_load_is_cached(self, sample_config):
        config_mgr = ConfigManager()
        first = config_mgr.load_config(sample_config)
        sample_config.write_text("logformat:\n  format: '%h'\n", encoding='utf-8')
        assert config_mgr.load_config() is first

        config_mgr.reload()
        assert config_mgr.get('logformat.format') == '%h'

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            ConfigManager().load_config(temp_dir / 'nope.yaml')

    def test_invalid_yaml(self, temp_dir):
        bad = temp_dir / 'config.yaml'
        bad.write_text("logformat: [unclosed\n", encoding='utf-8')
        with pytest.raises(ConfigurationError):
            ConfigManager().load_config(bad)

    def test_non_mapping_yaml(self, temp_dir):
        bad = temp_dir / 'config.yaml'
        bad.write_text("- just\n- a list\n", encoding='utf-8')
        with pytest.raises(ConfigurationError):
            ConfigManager().load_config(bad)

    def test_empty_yaml(self, temp_dir):
        empty = temp_dir / 'config.yaml'
        empty.write_text("", encoding='utf-8')
        assert ConfigManager().load_config(empty) == {}


class TestGetLogFormat:
    """Tests for ConfigManager.get_log_format"""

    def test_preset_from_config(self, sample_config):
        config_mgr = ConfigManager()
        config_mgr.load_config(sample_config)
        assert config_mgr.get_log_format() == 'combined'

    def test_format_wins_over_preset(self, temp_dir):
        config_file = temp_dir / 'config.yaml'
        config_file.write_text("logformat:\n  format: '%h %s'\n  preset: common\n", encoding='utf-8')
        config_mgr = ConfigManager()
        config_mgr.load_config(config_file)
        assert config_mgr.get_log_format() == '%h %s'

    def test_environment_wins(self, sample_config, monkeypatch):
        monkeypatch.setenv(LOG_FORMAT_ENV, '%a %U')
        config_mgr = ConfigManager()
        config_mgr.load_config(sample_config)
        assert config_mgr.get_log_format() == '%a %U'

    def test_default(self, temp_dir):
        empty = temp_dir / 'config.yaml'
        empty.write_text("other: 1\n", encoding='utf-8')
        config_mgr = ConfigManager()
        config_mgr.load_config(empty)
        assert config_mgr.get_log_format('%h') == '%h'

    def test_non_string_format(self, temp_dir):
        config_file = temp_dir / 'config.yaml'
        config_file.write_text("logformat:\n  format: [1, 2]\n", encoding='utf-8')
        config_mgr = ConfigManager()
        config_mgr.load_config(config_file)
        with pytest.raises(ConfigurationError):
            config_mgr.get_log_format()


class TestMultiprocessingConfig:
    """Tests for MultiprocessingConfig"""

    def test_get_config_defaults(self):
        config = MultiprocessingConfig.get_config()

        assert config['enabled'] is True
        assert config['num_workers'] is None
        assert config['chunk_size'] == 10000
        assert config['min_lines_for_parallel'] == 10000

    def test_get_config_from_file(self, sample_config):
        ConfigManager().load_config(sample_config)
        config = MultiprocessingConfig.get_config()

        assert config['enabled'] is False
        assert config['chunk_size'] == 500
        assert config['min_lines_for_parallel'] == 10000

    def test_get_optimal_workers(self):
        assert 1 <= MultiprocessingConfig.get_optimal_workers(500, min_items_per_worker=100) <= 5
        assert MultiprocessingConfig.get_optimal_workers(10, min_items_per_worker=100) == 1
        assert MultiprocessingConfig.get_optimal_workers(100000, 100, max_workers=4) == 4

    def test_should_use_multiprocessing(self):
        config = MultiprocessingConfig.get_config()
        assert MultiprocessingConfig.should_use_multiprocessing(20000, config) is True
        assert MultiprocessingConfig.should_use_multiprocessing(100, config) is False

        config['enabled'] = False
        assert MultiprocessingConfig.should_use_multiprocessing(100000, config) is False

    def test_get_processing_params_overrides(self):
        use_mp, num_workers, chunk_size = MultiprocessingConfig.get_processing_params(
            20000, override_enabled=False, override_chunk_size=50
        )
        assert use_mp is False
        assert chunk_size == 50

        use_mp, num_workers, chunk_size = MultiprocessingConfig.get_processing_params(
            20000, override_num_workers=3
        )
        assert use_mp is True
        assert num_workers == 3
