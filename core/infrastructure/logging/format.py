from typing import Any, Dict

LEVEL_COLORS = {
    "CRITICAL": "<red>",
    "DEBUG": "<white>",
    "ERROR": "<magenta>",
    "INFO": "<blue>",
    "SUCCESS": "<green>",
    "TRACE": "<dim>",
    "WARNING": "<yellow>",
}


class CustomLogFormat:
    """Build loguru format strings for the console and file sinks.

    Loguru treats the returned string as a template, so braces coming from
    the message or the bound context are escaped before interpolation.
    """

    def __init__(self, record: Dict[str, Any]) -> None:
        self.record = record
        self.time_str = self.record["time"].strftime("%Y-%m-%d %H:%M:%S.%f")[:-4]
        self.level = self.record["level"].name
        self.level_color = LEVEL_COLORS.get(self.level, "<white>")
        self.closing_tag = f"</{self.level_color.strip('<>')}>"

        function = self.record["function"]
        if function == "<module>":
            function = "\\<module\\>"
        self.location = f"{self.record['file']}:{function}:{self.record['line']}"

    @staticmethod
    def _escape(value: Any) -> str:
        return str(value).replace("{", "{{").replace("}", "}}")

    def _prefix(self) -> str:
        return (
            f"<dim><bold>{self.time_str}</bold></dim> | "
            f"<level>{self.level_color}{self.level:8}{self.closing_tag}</level> | "
            f"<cyan>{self.location}</cyan> - "
        )

    def log_console_format(self) -> str:
        """Format the log record for console output.

        Returns
        -------
        str
            Timestamp, coloured level, file location and message.
        """
        request_id = self.record["extra"].get("request_id")
        request_tag = f"<dim>[{self._escape(request_id)}]</dim> " if request_id else ""

        return (
            self._prefix()
            + request_tag
            + f"<level>{self.level_color}{{message}}{self.closing_tag}</level>"
            + "\n{exception}"
        )

    def log_file_format(self) -> str:
        """Format the log record for file output.

        Includes every bound context value (client ip, path, connection id)
        except the request id, which is already part of the serialized record.

        Returns
        -------
        str
            Formatted string suitable for file logging.
        """
        context_parts = [
            f"{key}={self._escape(value)}"
            for key, value in self.record["extra"].items()
            if key != "request_id"
        ]
        context_string = f" | {', '.join(context_parts)}" if context_parts else ""

        return (
            self._prefix()
            + f"<level>{self.level_color}{{message}}{self.closing_tag}</level>"
            + f"<bold><dim>{context_string}</dim></bold>"
            + "\n{exception}"
        )
