import json
import logging
from typing import Any

from .config import CliConfig
from .core.logging import CLI_LOGGER_NAME


class OutputHandler:
    config: CliConfig
    logger: logging.Logger

    def __init__(self, config: CliConfig):
        self.config = config
        self.logger = logging.getLogger(CLI_LOGGER_NAME)

    def handle_output(self, result: Any) -> None:
        """Main output handler that determines output format"""
        if self.config.enable_json:
            self.output_console_json(result)
        else:
            self.output_console_plain(result)

    def output_console_json(self, result: Any) -> None:
        print(json.dumps({"command": self.config.command, "result": result}))

    def output_console_plain(self, result: Any) -> None:
        """Prints one value per line so the output can be consumed by shell scripts"""
        if result is None:
            self.logger.info(f"No result for {self.config.command}")
            return

        if isinstance(result, bool):
            print("true" if result else "false")
        elif isinstance(result, list):
            for item in result:
                print(item)
        elif isinstance(result, dict):
            for key, value in result.items():
                print(f"{key}={self._format_value(value)}")
        else:
            print(result)

    @staticmethod
    def _format_value(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def return_exit_code(self, result: Any) -> int:
        # Soft-failing git queries report a missing result rather than raising
        if self.config.command in ("deepen", "fetch") and result is False:
            return 1
        return 0
