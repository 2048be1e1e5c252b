"""Line-oriented operator console on stdin/stdout."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, TextIO

from ..core.logging_utils import get_module_logger
from .coordinator import BridgeCoordinator
from .operator_log import LogEntry

HELP_TEXT = """\
Available Commands:
  connect           - Connect to the paired Bluetooth module
  disconnect        - Close the Bluetooth connection
  send              - Send the current location
  test              - Send a test message
  raw <text>        - Send arbitrary text
  auto on [secs]    - Start auto-send (default every 5 seconds)
  auto off          - Stop auto-send
  status            - Show connection and location status
  paired            - List paired Bluetooth devices
  logs              - Show the operator log
  clear             - Clear the operator log
  export <path>     - Write the operator log to a text file
  help              - Show this help message
  quit / exit       - Shut down and exit"""

Handler = Callable[[List[str]], Awaitable[None]]


class OperatorConsole:
    """Reads one command per line and drives the coordinator.

    Every operator log entry is echoed to ``output`` as it is added, so the
    console shows the same live feed the log records.
    """

    def __init__(
        self,
        coordinator: BridgeCoordinator,
        *,
        input_stream: Optional[TextIO] = None,
        output: Optional[TextIO] = None,
        echo_log: bool = True,
    ) -> None:
        self.logger = get_module_logger("Console")
        self.coordinator = coordinator
        self.input_stream = input_stream or sys.stdin
        self.output = output or sys.stdout
        self.running = False

        self._commands: Dict[str, Handler] = {
            "connect": self._cmd_connect,
            "disconnect": self._cmd_disconnect,
            "send": self._cmd_send,
            "test": self._cmd_test,
            "raw": self._cmd_raw,
            "auto": self._cmd_auto,
            "status": self._cmd_status,
            "paired": self._cmd_paired,
            "logs": self._cmd_logs,
            "clear": self._cmd_clear,
            "export": self._cmd_export,
            "help": self._cmd_help,
            "quit": self._cmd_quit,
            "exit": self._cmd_quit,
        }

        if echo_log:
            coordinator.log.set_entry_callback(self._echo_entry)

    def _print(self, text: str = "") -> None:
        print(text, file=self.output, flush=True)

    def _echo_entry(self, entry: LogEntry) -> None:
        self._print(entry.line)

    async def _read_line(self) -> Optional[str]:
        line = await asyncio.to_thread(self.input_stream.readline)
        if not line:
            return None
        return line

    async def run(self) -> None:
        """Process commands until ``quit`` or EOF."""
        self.logger.info("Starting operator console")
        self.running = True
        self._print("Type 'help' for available commands, 'quit' to exit")

        while self.running:
            try:
                line = await self._read_line()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self.logger.error("Console read error: %s", exc)
                break

            if line is None:
                self.logger.info("EOF on console input")
                break

            line = line.strip()
            if not line:
                continue

            await self.execute(line)

        self.running = False
        self.logger.info("Operator console exiting")

    async def execute(self, line: str) -> None:
        """Parse and execute one command line; errors are reported, never raised."""
        parts = line.split(maxsplit=1)
        if not parts:
            return
        cmd = parts[0].lower()
        rest = parts[1] if len(parts) > 1 else ""
        args = [rest] if cmd == "raw" else rest.split()

        handler = self._commands.get(cmd)
        if handler is None:
            self.coordinator.log.add(f"Unknown command: {cmd} (type 'help')")
            return

        try:
            await handler(args)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.logger.error("Command '%s' failed: %s", cmd, exc, exc_info=True)
            self.coordinator.log.add(f"Command error: {exc}")

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def _cmd_connect(self, args: List[str]) -> None:
        await self.coordinator.connect()

    async def _cmd_disconnect(self, args: List[str]) -> None:
        await self.coordinator.disconnect()

    async def _cmd_send(self, args: List[str]) -> None:
        await self.coordinator.send_current_location()

    async def _cmd_test(self, args: List[str]) -> None:
        await self.coordinator.send_test_message()

    async def _cmd_raw(self, args: List[str]) -> None:
        text = args[0] if args else ""
        if not text:
            self._print("Usage: raw <text>")
            return
        await self.coordinator.send_text(text)

    async def _cmd_auto(self, args: List[str]) -> None:
        mode = args[0].lower() if args else ""
        if mode == "on":
            await self.coordinator.enable_auto_send(args[1] if len(args) > 1 else "")
        elif mode == "off":
            await self.coordinator.disable_auto_send()
        else:
            self._print("Usage: auto on [secs] | auto off")

    async def _cmd_status(self, args: List[str]) -> None:
        status = self.coordinator.status()
        if status.bluetooth_connected:
            bluetooth = f"Connected to {status.device_name or 'Unknown'}"
        else:
            bluetooth = "Disconnected"
        self._print("Bridge Status:")
        self._print(f"  Bluetooth: {bluetooth}")
        self._print(f"  Location: {'Available' if status.location_available else 'Not available'}")
        auto = f"every {status.auto_send_interval_ms // 1000} s" if status.auto_send_enabled else "off"
        self._print(f"  Auto-send: {auto}")
        self._print(f"  Can send location: {'yes' if status.can_send_location else 'no'}")

    async def _cmd_paired(self, args: List[str]) -> None:
        devices = await self.coordinator.bluetooth.list_paired_devices()
        if not devices:
            self._print("No paired devices")
            return
        self._print("Paired devices:")
        for device in devices:
            self._print(f"  {device}")

    async def _cmd_logs(self, args: List[str]) -> None:
        lines = self.coordinator.log.lines()
        self._print(f"Operator log ({len(lines)} lines):")
        for line in lines:
            self._print(f"  {line}")

    async def _cmd_clear(self, args: List[str]) -> None:
        self.coordinator.log.clear()

    async def _cmd_export(self, args: List[str]) -> None:
        if not args:
            self._print("Usage: export <path>")
            return
        path = Path(args[0]).expanduser()
        try:
            count = await self.coordinator.log.export(path)
        except OSError as exc:
            self.coordinator.log.add(f"Export failed: {exc}")
            return
        self._print(f"Exported {count} lines to {path}")

    async def _cmd_help(self, args: List[str]) -> None:
        self._print(HELP_TEXT)

    async def _cmd_quit(self, args: List[str]) -> None:
        self.running = False


__all__ = ["HELP_TEXT", "OperatorConsole"]
