"""
Port scan: Node-related processes holding a listening TCP port.

Unix uses ``lsof``; Windows joins ``netstat -ano`` with ``tasklist``.
The parsers are pure functions over command output so they can be
tested without the tools installed.  Missing tools yield no processes.
"""

from __future__ import annotations

import logging
import re

from node_doctor.adapters.shell.command import run, run_command
from node_doctor.core import context
from node_doctor.core.models.environment import PortProcess

logger = logging.getLogger(__name__)

SCAN_TIMEOUT = 10.0
PS_TIMEOUT = 2.0

NODE_PROCESS_NAMES = frozenset({
    "node", "npm", "npx", "yarn", "pnpm", "tsx", "ts-node",
    "vite", "next", "nuxt", "electron",
    "node.exe", "npm.exe", "npx.exe", "yarn.exe", "pnpm.exe",
})

_LSOF_PORT_RE = re.compile(r":(\d+)$")
_NETSTAT_RE = re.compile(r"TCP\s+\S+:(\d+)\s+\S+\s+LISTENING\s+(\d+)", re.IGNORECASE)
_TASKLIST_RE = re.compile(r'"([^"]+)","(\d+)"')


def is_node_process(name: str) -> bool:
    lower = name.lower()
    return lower in NODE_PROCESS_NAMES or "node" in lower


# ── Parsers ─────────────────────────────────────────────────────


def parse_lsof_listen(output: str) -> list[PortProcess]:
    """Parse ``lsof -i -P -n -sTCP:LISTEN``; one entry per unique (pid, port)."""
    processes: list[PortProcess] = []
    seen: set[tuple[int, int]] = set()
    lines = output.strip().splitlines()
    # COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME
    for line in lines[1:]:
        parts = line.split()
        if len(parts) < 9:
            continue
        command, pid_str, name = parts[0], parts[1], parts[8]
        if not pid_str.isdigit() or not is_node_process(command):
            continue
        port_match = _LSOF_PORT_RE.search(name)
        if not port_match:
            continue
        key = (int(pid_str), int(port_match.group(1)))
        if key in seen:
            continue
        seen.add(key)
        processes.append(PortProcess(port=key[1], pid=key[0], name=command))
    return processes


def parse_netstat_listening(output: str) -> dict[int, list[int]]:
    """PID → listening ports from ``netstat -ano``."""
    pid_ports: dict[int, list[int]] = {}
    for line in output.splitlines():
        match = _NETSTAT_RE.search(line)
        if match:
            port, pid = int(match.group(1)), int(match.group(2))
            pid_ports.setdefault(pid, []).append(port)
    return pid_ports


def parse_tasklist(output: str, pid_ports: dict[int, list[int]]) -> list[PortProcess]:
    """Join ``tasklist /FO CSV /NH`` rows with the netstat port map."""
    processes: list[PortProcess] = []
    for line in output.splitlines():
        match = _TASKLIST_RE.search(line)
        if not match:
            continue
        image, pid = match.group(1), int(match.group(2))
        ports = pid_ports.get(pid)
        if not ports or not is_node_process(image):
            continue
        for port in ports:
            processes.append(PortProcess(port=port, pid=pid, name=image.replace(".exe", "")))
    return processes


# ── Scan ────────────────────────────────────────────────────────


def _scan_unix() -> list[PortProcess]:
    result = run("lsof", ["-i", "-P", "-n", "-sTCP:LISTEN"], timeout=SCAN_TIMEOUT)
    if result is None or not result.ok or not result.stdout.strip():
        return []
    processes = parse_lsof_listen(result.stdout)
    for proc in processes:
        command = run_command("ps", ["-p", str(proc.pid), "-o", "command="], timeout=PS_TIMEOUT)
        if command:
            proc.command = command
    return processes


def _scan_windows() -> list[PortProcess]:
    netstat = run("netstat", ["-ano"], timeout=SCAN_TIMEOUT)
    if netstat is None or not netstat.ok:
        return []
    pid_ports = parse_netstat_listening(netstat.stdout)
    if not pid_ports:
        return []
    tasklist = run("tasklist", ["/FO", "CSV", "/NH"], timeout=SCAN_TIMEOUT)
    if tasklist is None or not tasklist.ok:
        return []
    return parse_tasklist(tasklist.stdout, pid_ports)


def find_node_processes() -> list[PortProcess]:
    """All Node-related listening processes, sorted by port."""
    processes = _scan_windows() if context.is_windows() else _scan_unix()
    processes.sort(key=lambda p: p.port)
    logger.debug("Port scan: %d Node process(es) listening", len(processes))
    return processes
