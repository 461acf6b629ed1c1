"""Configuration validation for the file sender."""

from typing import Any, Dict


class ConfigValidator:
    """Validates file sender configuration."""

    REQUIRED_SECTIONS = ['server', 'auth', 'directories', 'file', 'workers']
    REQUIRED_DIRECTORIES = ['send_dir', 'archive_dir', 'log_dir']
    LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']

    def validate(self, config: Dict[str, Any]) -> None:
        """Validate configuration data.

        Args:
            config: Configuration dictionary to validate.

        Raises:
            ValueError: If configuration is invalid.
        """
        self._validate_structure(config)
        self._validate_server(config['server'])
        self._validate_directories(config['directories'])

        if not self._is_path(config['file'].get('log_file')):
            raise ValueError(f"File configuration log_file must be a file name: {config['file'].get('log_file')}")

        self._require_number(config['workers'], 'num_workers', 'Workers', minimum=1, integer=True)

        if 'monitoring' in config:
            monitoring = config['monitoring']
            self._require_number(monitoring, 'poll_interval_seconds', 'Monitoring', minimum=0.01)
            self._require_number(monitoring, 'stability_seconds', 'Monitoring', minimum=0)

        if 'logging' in config:
            self._validate_logging(config['logging'])

    def _validate_structure(self, config: Dict[str, Any]) -> None:
        """Validate basic configuration structure.

        Raises:
            ValueError: If required sections are missing.
        """
        missing_sections = [s for s in self.REQUIRED_SECTIONS if not isinstance(config.get(s), dict)]
        if missing_sections:
            raise ValueError(f"Missing required configuration sections: {missing_sections}")

    def _validate_server(self, server: Dict[str, Any]) -> None:
        if not server.get('host'):
            raise ValueError("Server configuration host cannot be empty")

        try:
            port = int(server.get('port'))
            if not (1 <= port <= 65535):
                raise ValueError()
        except (ValueError, TypeError):
            raise ValueError(f"Server configuration has invalid port: {server.get('port')}")

        if not isinstance(server.get('use_https', False), bool):
            raise ValueError(f"Server configuration use_https must be true or false: {server.get('use_https')}")

        if server.get('timeout_seconds') is not None:
            self._require_number(server, 'timeout_seconds', 'Server', minimum=0.001)

    def _validate_directories(self, directories: Dict[str, Any]) -> None:
        missing = [key for key in self.REQUIRED_DIRECTORIES if not self._is_path(directories.get(key))]
        if missing:
            raise ValueError(f"Directories configuration missing required paths: {missing}")

    @staticmethod
    def _is_path(value: Any) -> bool:
        return isinstance(value, str) and bool(value.strip())

    def _validate_logging(self, logging_config: Dict[str, Any]) -> None:
        level = str(logging_config.get('level', 'INFO')).upper()
        if level not in self.LOG_LEVELS:
            raise ValueError(f"Logging configuration has invalid level: {level}")
        self._require_number(logging_config, 'max_size_mb', 'Logging', minimum=0.001)
        self._require_number(logging_config, 'rotation_check_seconds', 'Logging', minimum=1)

    @staticmethod
    def _require_number(section: Dict[str, Any], key: str, label: str,
                        minimum: float, integer: bool = False) -> None:
        value = section.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or (integer and not isinstance(value, int)):
            raise ValueError(f"{label} configuration {key} must be a number: {value}")
        if value < minimum:
            raise ValueError(f"{label} configuration {key} must be at least {minimum}: {value}")
