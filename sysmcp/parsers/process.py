"""Parsers and derived analyses for ``ps`` and ``lsof`` output."""
from __future__ import annotations

import os
from typing import Iterable, Sequence

from sysmcp.models import (
    ChildProcess,
    CpuBottleneck,
    CriticalService,
    DescriptorRanked,
    DetailedProcessStatus,
    HeavyService,
    IoIntensiveProcess,
    MemoryBottleneck,
    MemoryDetails,
    MemoryRanked,
    ParentProcess,
    PerformanceImpact,
    ProcessDetail,
    ProcessInfo,
    ProcessResources,
    ProcessState,
    ProcessSummary,
    ProcessTree,
    RootProcess,
    SecurityAnalysis,
    SuspiciousProcess,
    SystemServices,
    TimeInfo,
    TopProcesses,
)
from sysmcp.parsers.common import leading_float, leading_int, round_half_up

SORT_KEYS = ("cpu", "memory", "name")

SYSTEM_SERVICE_NAMES = (
    "launchd", "kernel", "WindowServer", "loginwindow", "Finder",
    "coreaudiod", "bluetoothd", "wifid", "networkd", "cfprefsd",
)

KNOWN_PROCESSES = (
    "kernel", "launchd", "WindowServer", "Finder", "loginwindow",
    "coreaudiod", "bluetoothd", "cfprefsd", "mds", "mdworker",
    "Google Chrome", "Cursor", "Slack", "Safari", "Terminal",
    "node", "python", "java", "firefox", "docker",
)

_TABLE_FIELDS = 12


def _process_name(command: str) -> str:
    return os.path.basename(command.rstrip("/")) or command


def parse_ps_list(output: str) -> list[ProcessInfo]:
    """Rows of ``ps -A -o pid=,pcpu=,pmem=,rss=,comm=``; memory in MB."""
    processes: list[ProcessInfo] = []
    for line in (output or "").splitlines():
        parts = line.split(None, 4)
        if len(parts) < 5 or not parts[0].isdigit():
            continue
        processes.append(
            ProcessInfo(
                pid=int(parts[0]),
                name=_process_name(parts[4].strip()),
                cpu=round(leading_float(parts[1]), 2),
                memory=round(leading_int(parts[3]) / 1024, 2),
                memory_percent=round(leading_float(parts[2]), 2),
            )
        )
    return processes


def sort_processes(
    processes: Iterable[ProcessInfo], sort_by: str = "cpu", limit: int = 10
) -> list[ProcessInfo]:
    """Active processes ordered by ``sort_by`` and cut to ``limit``.

    ``cpu`` and ``memory`` sort descending, ``name`` ascending; ties keep
    enumeration order. Unknown keys sort by cpu.
    """
    if limit <= 0:
        return []
    active = [p for p in processes if p.cpu > 0 or p.memory > 0]
    if sort_by == "name":
        active.sort(key=lambda p: p.name.lower())
    elif sort_by == "memory":
        active.sort(key=lambda p: p.memory, reverse=True)
    else:
        active.sort(key=lambda p: p.cpu, reverse=True)
    return active[:limit]


def parse_cpu_time(text: str) -> float:
    """``MM:SS.ss``, ``HH:MM:SS`` or ``D-HH:MM:SS`` to seconds (0 if garbled)."""
    if not text:
        return 0.0
    days = 0
    clock = text.strip()
    if "-" in clock:
        day_part, _, clock = clock.partition("-")
        if not day_part.isdigit():
            return 0.0
        days = int(day_part)
    pieces = clock.split(":")
    if len(pieces) not in (2, 3):
        return 0.0
    try:
        values = [float(piece) for piece in pieces]
    except ValueError:
        return 0.0
    seconds = 0.0
    for value in values:
        seconds = seconds * 60 + value
    return days * 86400 + seconds


def parse_fd_counts(output: str) -> dict[int, int]:
    """``<pid> <count>`` pairs from the lsof/awk summary."""
    counts: dict[int, int] = {}
    for line in (output or "").splitlines():
        parts = line.split()
        if len(parts) < 2 or not parts[0].isdigit() or not parts[1].isdigit():
            continue
        counts[int(parts[0])] = int(parts[1])
    return counts


def parse_ps_table(
    output: str, fd_counts: dict[int, int] | None = None, now_ms: int = 0
) -> list[ProcessDetail]:
    """Rows of ``ps -o pid=,ppid=,pcpu=,pmem=,rss=,vsz=,time=,user=,state=,pri=,nice=,args=``.

    Rows with a non-numeric pid or fewer than twelve columns are skipped.
    """
    fd_counts = fd_counts or {}
    details: list[ProcessDetail] = []
    for line in (output or "").splitlines():
        parts = line.split(None, _TABLE_FIELDS - 1)
        if len(parts) < _TABLE_FIELDS or not parts[0].isdigit():
            continue
        pid = int(parts[0])
        command = parts[11].strip()
        rss = leading_int(parts[4])
        cpu_time = parts[6] or "0:00.00"
        run_time = parse_cpu_time(cpu_time)
        descriptors = fd_counts.get(pid, 0)
        details.append(
            ProcessDetail(
                pid=pid,
                ppid=leading_int(parts[1]),
                name=_process_name(command.split()[0]) if command else "unknown",
                command=command,
                user=parts[7] or "unknown",
                cpu=leading_float(parts[2]),
                memory=round(rss / 1024, 2),
                memory_percent=leading_float(parts[3]),
                memory_details=MemoryDetails(
                    rss=rss,
                    vsz=leading_int(parts[5]),
                    shared=round_half_up(rss * 0.1),
                    private=round_half_up(rss * 0.9),
                ),
                time_info=TimeInfo(
                    cpu_time=cpu_time,
                    start_time=int(now_ms - run_time * 1000),
                    run_time=run_time,
                ),
                resources=ProcessResources(
                    threads=1, file_descriptors=descriptors, open_files=descriptors, ports=0
                ),
                status=ProcessState(
                    state=parts[8] or "unknown",
                    priority=leading_int(parts[9]),
                    nice=leading_int(parts[10]),
                ),
            )
        )
    return details


def summarize_states(details: Sequence[ProcessDetail]) -> ProcessSummary:
    summary = ProcessSummary()
    for detail in details:
        summary.total_processes += 1
        summary.total_threads += detail.resources.threads
        state = detail.status.state
        if "R" in state:
            summary.running_processes += 1
        elif "S" in state or "I" in state:
            summary.sleeping_processes += 1
        elif "Z" in state:
            summary.zombie_processes += 1
    return summary


def rank_processes(details: Sequence[ProcessDetail]) -> TopProcesses:
    by_cpu = sorted((d for d in details if d.cpu > 0.1), key=lambda d: d.cpu, reverse=True)
    by_memory = sorted((d for d in details if d.memory > 10), key=lambda d: d.memory, reverse=True)
    by_fds = sorted(
        (d for d in details if d.resources.file_descriptors > 10),
        key=lambda d: d.resources.file_descriptors,
        reverse=True,
    )
    return TopProcesses(
        by_cpu=by_cpu[:20],
        by_memory=[
            MemoryRanked(
                pid=d.pid, name=d.name, memory=d.memory,
                memory_percent=d.memory_percent, cpu=d.cpu, user=d.user,
            )
            for d in by_memory[:20]
        ],
        by_file_descriptors=[
            DescriptorRanked(
                pid=d.pid, name=d.name,
                file_descriptors=d.resources.file_descriptors,
                open_files=d.resources.open_files, user=d.user,
            )
            for d in by_fds[:15]
        ],
    )


def build_process_tree(details: Sequence[ProcessDetail], limit: int = 10) -> ProcessTree:
    """Group the table by ppid; parents with the most children come first."""
    by_pid = {d.pid: d for d in details}
    children: dict[int, list[ProcessDetail]] = {}
    for detail in details:
        if detail.ppid in by_pid and detail.ppid != detail.pid:
            children.setdefault(detail.ppid, []).append(detail)

    parents: list[ParentProcess] = []
    for ppid, kids in children.items():
        parent = by_pid[ppid]
        kids = sorted(kids, key=lambda d: d.cpu, reverse=True)
        parents.append(
            ParentProcess(
                pid=parent.pid,
                name=parent.name,
                child_count=len(kids),
                total_cpu_usage=round(sum(k.cpu for k in kids), 2),
                total_memory_usage=round(sum(k.memory for k in kids), 2),
                children=[
                    ChildProcess(pid=k.pid, name=k.name, cpu=k.cpu, memory=k.memory)
                    for k in kids[:limit]
                ],
            )
        )
    parents.sort(key=lambda p: p.child_count, reverse=True)
    return ProcessTree(top_parents=parents[:limit])


def _service_impact(detail: ProcessDetail) -> str:
    if detail.cpu > 20 or detail.memory > 1000:
        return "high"
    if detail.cpu > 10 or detail.memory > 500:
        return "medium"
    return "low"


def analyze_services(by_cpu: Sequence[ProcessDetail]) -> SystemServices:
    critical = [
        CriticalService(name=d.name, pid=d.pid, cpu=d.cpu, memory=d.memory)
        for d in by_cpu
        if any(name in d.name for name in SYSTEM_SERVICE_NAMES)
    ]
    heavy = [d for d in by_cpu if d.cpu > 5.0 or d.memory > 500][:10]
    return SystemServices(
        critical_services=critical,
        heavy_services=[
            HeavyService(name=d.name, pid=d.pid, cpu=d.cpu, memory=d.memory,
                         impact=_service_impact(d))
            for d in heavy
        ],
    )


def is_known_process(name: str) -> bool:
    lowered = name.lower()
    return any(known.lower() in lowered for known in KNOWN_PROCESSES)


def suspicious_reason(detail: ProcessDetail) -> str:
    if detail.cpu > 50:
        return "High CPU usage"
    if detail.memory > 2000:
        return "High memory usage"
    if detail.resources.file_descriptors > 1000:
        return "Excessive file descriptors"
    return "Unknown process with high resource usage"


def analyze_security(by_cpu: Sequence[ProcessDetail]) -> SecurityAnalysis:
    roots = [
        RootProcess(pid=d.pid, name=d.name, command=d.command, cpu=d.cpu, memory=d.memory)
        for d in by_cpu
        if d.user == "root"
    ]
    suspicious = []
    for detail in by_cpu:
        unknown = not is_known_process(detail.name)
        if (
            (unknown and detail.cpu > 50)
            or (unknown and detail.memory > 2000)
            or detail.resources.file_descriptors > 1000
        ):
            suspicious.append(
                SuspiciousProcess(
                    pid=detail.pid,
                    name=detail.name,
                    reason=suspicious_reason(detail),
                    cpu=detail.cpu,
                    memory=detail.memory,
                    file_descriptors=detail.resources.file_descriptors,
                )
            )
    return SecurityAnalysis(root_processes=roots, suspicious_processes=suspicious)


def cpu_recommendation(cpu: float) -> str:
    if cpu > 80:
        return "Consider restarting or terminating the process"
    if cpu > 50:
        return "Optimize the process or set resource limits"
    if cpu > 30:
        return "Reschedule background work"
    return "Keep monitoring"


def memory_recommendation(memory_percent: float) -> str:
    if memory_percent > 20:
        return "Check for memory leaks and restart the process"
    if memory_percent > 10:
        return "Monitor memory usage closely"
    if memory_percent > 5:
        return "Review memory optimization"
    return "Within normal range"


def analyze_performance_impact(
    by_cpu: Sequence[ProcessDetail], by_memory: Sequence[MemoryRanked]
) -> PerformanceImpact:
    return PerformanceImpact(
        cpu_bottlenecks=[
            CpuBottleneck(
                pid=d.pid,
                name=d.name,
                cpu=d.cpu,
                impact=min(round_half_up(d.cpu * 2), 100),
                recommendation=cpu_recommendation(d.cpu),
            )
            for d in [d for d in by_cpu if d.cpu > 15][:5]
        ],
        memory_bottlenecks=[
            MemoryBottleneck(
                pid=m.pid,
                name=m.name,
                memory=m.memory,
                memory_percent=m.memory_percent,
                impact=min(round_half_up(m.memory_percent * 10), 100),
                recommendation=memory_recommendation(m.memory_percent),
            )
            for m in [m for m in by_memory if m.memory_percent > 5][:5]
        ],
        io_intensive_processes=[
            IoIntensiveProcess(pid=d.pid, name=d.name,
                               file_descriptors=d.resources.file_descriptors)
            for d in [d for d in by_cpu if d.resources.file_descriptors > 50][:5]
        ],
    )


def detailed_process_status(
    table_output: str, fd_output: str = "", now_ms: int = 0
) -> DetailedProcessStatus:
    details = parse_ps_table(table_output, parse_fd_counts(fd_output), now_ms)
    top = rank_processes(details)
    return DetailedProcessStatus(
        summary=summarize_states(details),
        top_processes=top,
        process_tree=build_process_tree(details),
        system_services=analyze_services(top.by_cpu),
        security_analysis=analyze_security(top.by_cpu),
        performance_impact=analyze_performance_impact(top.by_cpu, top.by_memory),
    )


def basic_process_status(
    processes: Sequence[ProcessInfo], now_ms: int = 0
) -> DetailedProcessStatus:
    """Minimal detailed view built from the plain process list."""
    by_cpu = [
        ProcessDetail(
            pid=p.pid,
            name=p.name,
            command=p.name,
            cpu=p.cpu,
            memory=p.memory,
            memory_percent=p.memory_percent,
            memory_details=MemoryDetails(
                rss=round_half_up(p.memory * 1024),
                vsz=round_half_up(p.memory * 1024 * 2),
                shared=0,
                private=round_half_up(p.memory * 1024),
            ),
            time_info=TimeInfo(start_time=now_ms),
            status=ProcessState(state="running"),
        )
        for p in processes[:10]
    ]
    count = len(processes)
    return DetailedProcessStatus(
        summary=ProcessSummary(
            total_processes=count,
            running_processes=count,
            total_threads=count,
        ),
        top_processes=TopProcesses(by_cpu=by_cpu),
    )
