"""Configuration management for the file sender."""

import copy
import logging
import os
from typing import Any, Dict, List, Optional

import yaml

from .config_validator import ConfigValidator
from ..core.models import AgentSettings


DEFAULT_CONFIG_PATH = "config.yaml"

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    'server': {
        'host': 'localhost',
        'port': 38080,
        'context': 'upload',
        'use_https': True,
        'cert_file': 'server.crt',
        'key_file': 'server.key',
        'timeout_seconds': None,
    },
    'auth': {
        'username': 'user',
        'password': 'password',
    },
    'directories': {
        'send_dir': './send/',
        'archive_dir': './archive/',
        'log_dir': './logs/',
    },
    'file': {
        'log_file': 'app_daily.log',
    },
    'workers': {
        'num_workers': 8,
    },
    'monitoring': {
        'poll_interval_seconds': 1.0,
        'stability_seconds': 2.0,
    },
    'logging': {
        'level': 'INFO',
        'max_size_mb': 2,
        'rotation_check_seconds': 60,
    },
}


class ConfigManager:
    """Loads the YAML config, creating it or filling in missing keys as needed."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to the config file. Defaults to ``config.yaml``
                in the working directory.
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self.config_data: Dict[str, Any] = {}
        self.validator = ConfigValidator()
        self.logger = logging.getLogger(__name__)
        self.messages: List[str] = []

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from file.

        A missing file is created with defaults. Missing sections and keys are
        added from the defaults and written back.

        Returns:
            Dictionary containing configuration data.

        Raises:
            ValueError: If the file cannot be read, parsed or written, or if the
                configuration is invalid.
        """
        if not os.path.exists(self.config_path):
            self._note(f"The config file {self.config_path} was not found. Creating a new configuration file.")
            self.config_data = copy.deepcopy(DEFAULT_CONFIG)
            self._save()
            self._note(f"The config file {self.config_path} was successfully created with default settings.")
        else:
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    self.config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in config file {self.config_path}: {e}")
            except OSError as e:
                raise ValueError(f"Error reading config file {self.config_path}: {e}")

            if not isinstance(self.config_data, dict):
                raise ValueError(f"Config file {self.config_path} must contain a mapping")

            if self._set_defaults():
                self._save()

        self.validator.validate(self.config_data)

        return self.config_data

    def _set_defaults(self) -> bool:
        """Backfill missing sections and keys.

        Returns:
            True if anything was added.
        """
        changed = False
        for section, section_defaults in DEFAULT_CONFIG.items():
            if not isinstance(self.config_data.get(section), dict):
                self.config_data[section] = {}
                self._note(f"Section [{section}] created")
                changed = True
            for key, value in section_defaults.items():
                if key not in self.config_data[section]:
                    self.config_data[section][key] = value
                    self._note(f"Added value {key} = {value} to the [{section}] section")
                    changed = True
        return changed

    def _save(self) -> None:
        try:
            with open(self.config_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(self.config_data, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ValueError(f"Error writing config file {self.config_path}: {e}")

    def _note(self, message: str) -> None:
        # Logging may not be configured yet; keep the messages for the caller
        self.messages.append(message)
        self.logger.info(message)

    def get_server_config(self) -> Dict[str, Any]:
        return self.config_data.get('server', {})

    def get_auth_config(self) -> Dict[str, Any]:
        return self.config_data.get('auth', {})

    def get_directories_config(self) -> Dict[str, Any]:
        return self.config_data.get('directories', {})

    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration, merged with the ``file`` section.

        Returns:
            Logging configuration dictionary.
        """
        logging_config = dict(self.config_data.get('logging', {}))
        logging_config['log_file'] = self.config_data.get('file', {}).get('log_file')
        return logging_config

    def get_endpoint(self) -> str:
        """Build ``scheme://host:port/context`` from the server section."""
        server = self.get_server_config()
        scheme = 'https' if server.get('use_https') else 'http'
        context = str(server.get('context') or '').lstrip('/')
        return f"{scheme}://{server['host']}:{server['port']}/{context}"

    def get_agent_settings(self) -> AgentSettings:
        """Resolve the loaded configuration into agent settings.

        Returns:
            AgentSettings for the transfer agent.
        """
        server = self.get_server_config()
        auth = self.get_auth_config()
        directories = self.get_directories_config()
        logging_config = self.get_logging_config()
        monitoring = self.config_data.get('monitoring', {})
        use_https = bool(server.get('use_https'))
        timeout = server.get('timeout_seconds')

        return AgentSettings(
            endpoint=self.get_endpoint(),
            username=str(auth.get('username', '')),
            password=str(auth.get('password', '')),
            send_dir=directories['send_dir'],
            archive_dir=directories['archive_dir'],
            log_dir=directories['log_dir'],
            log_file=logging_config['log_file'],
            use_https=use_https,
            cert_file=server.get('cert_file') if use_https else None,
            key_file=server.get('key_file') if use_https else None,
            timeout_seconds=float(timeout) if timeout is not None else None,
            num_workers=int(self.config_data['workers']['num_workers']),
            poll_interval=float(monitoring['poll_interval_seconds']),
            stability_seconds=float(monitoring['stability_seconds']),
            max_log_bytes=int(float(logging_config['max_size_mb']) * 1024 * 1024),
            rotation_check_interval=float(logging_config['rotation_check_seconds']),
            log_level=str(logging_config.get('level', 'INFO')).upper(),
        )
