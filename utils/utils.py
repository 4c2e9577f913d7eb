"""
Logging setup, performance monitoring and result reporting for the election
simulation.
"""

import json
import logging
import platform
import threading
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import psutil


@dataclass
class PerformanceMetrics:
    operation: str
    duration_seconds: float
    cpu_percent: float
    memory_mb: float
    timestamp: float
    additional_data: Dict[str, Any] = field(default_factory=dict)


def setup_logging(log_level: str = "INFO", log_file: Optional[Path] = None, log_dir: Path = Path("logs")):
    """Configure the root logger with a timestamped log file and console output"""
    if log_file is None:
        log_file = Path(log_dir) / f"election_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Clear existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    logging.getLogger("asyncio").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized. Log file: {log_file}")

    return logger


class PerformanceMonitor:
    """Collects per-operation timings; safe to share between authority worker threads"""

    def __init__(self):
        self.metrics: List[PerformanceMetrics] = []
        self.process = psutil.Process()
        self._lock = threading.Lock()

    def start_operation(self, operation_name: str) -> 'OperationContext':
        return OperationContext(self, operation_name)

    def record_metric(self, metric: PerformanceMetrics):
        with self._lock:
            self.metrics.append(metric)

    def get_summary(self) -> Dict[str, Any]:
        with self._lock:
            metrics = list(self.metrics)

        if not metrics:
            return {
                'total_operations': 0,
                'total_duration': 0.0,
                'operations': {}
            }

        operation_groups: Dict[str, List[PerformanceMetrics]] = {}
        for metric in metrics:
            operation_groups.setdefault(metric.operation, []).append(metric)

        summary = {
            'total_operations': len(metrics),
            'operations': {}
        }

        for op_name, op_metrics in operation_groups.items():
            durations = np.array([m.duration_seconds for m in op_metrics])
            memory_usages = [m.memory_mb for m in op_metrics if m.memory_mb > 0]
            total = float(durations.sum())

            summary['operations'][op_name] = {
                'count': len(op_metrics),
                'total_duration': total,
                'avg_duration': float(durations.mean()),
                'min_duration': float(durations.min()),
                'max_duration': float(durations.max()),
                'std_duration': float(durations.std()) if len(durations) > 1 else 0.0,
                'avg_memory_mb': float(np.mean(memory_usages)) if memory_usages else 0.0,
                'peak_memory_mb': max(memory_usages) if memory_usages else 0.0,
                'throughput_ops_per_sec': len(op_metrics) / total if total > 0 else 0.0
            }

        summary['total_duration'] = sum(
            op_data['total_duration']
            for op_data in summary['operations'].values()
        )

        return summary

    def save_metrics(self, filepath: Path):
        filepath.parent.mkdir(parents=True, exist_ok=True)

        metrics_data = {
            'metrics': [asdict(m) for m in self.metrics],
            'summary': self.get_summary(),
            'system_info': get_system_info(),
            'timestamp': datetime.now().isoformat()
        }

        with open(filepath, 'w') as f:
            json.dump(metrics_data, f, indent=2, default=str)

    def reset(self):
        with self._lock:
            self.metrics.clear()


class OperationContext:
    """Context manager timing one operation"""

    def __init__(self, monitor: PerformanceMonitor, operation_name: str):
        self.monitor = monitor
        self.operation_name = operation_name
        self.start_time = None
        self.start_memory = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.start_memory = self.monitor.process.memory_info().rss / 1024 / 1024
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.perf_counter() - self.start_time
        end_memory = self.monitor.process.memory_info().rss / 1024 / 1024

        self.monitor.record_metric(PerformanceMetrics(
            operation=self.operation_name,
            duration_seconds=duration,
            cpu_percent=self.monitor.process.cpu_percent(),
            memory_mb=max(self.start_memory, end_memory),
            timestamp=time.time(),
            additional_data={'exception': exc_type is not None}
        ))


def get_system_info() -> Dict[str, Any]:
    vm = psutil.virtual_memory()
    return {
        'platform': platform.platform(),
        'processor': platform.processor(),
        'python_version': platform.python_version(),
        'machine': platform.machine(),
        'cpu_count_logical': psutil.cpu_count(logical=True),
        'total_memory_gb': round(vm.total / 1024 / 1024 / 1024, 2),
        'available_memory_gb': round(vm.available / 1024 / 1024 / 1024, 2),
        'timestamp': datetime.now().isoformat()
    }


def save_results(results: Dict[str, Any], filepath: Path):
    """Save simulation results as JSON, with a human-readable summary next to it"""
    filepath.parent.mkdir(parents=True, exist_ok=True)

    def convert_to_serializable(obj):
        if hasattr(obj, '__dataclass_fields__'):
            return convert_to_serializable(asdict(obj))
        if isinstance(obj, dict):
            return {str(k): convert_to_serializable(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple)):
            return [convert_to_serializable(item) for item in obj]
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, (np.integer, np.floating, np.bool_)):
            return obj.item()
        if isinstance(obj, bytes):
            return obj.hex()
        if isinstance(obj, (Path, datetime)):
            return str(obj)
        return obj

    enhanced_results = {
        'metadata': {
            'generated_at': datetime.now().isoformat(),
            'system_info': get_system_info(),
            'file_path': str(filepath)
        },
        'data': convert_to_serializable(results)
    }

    with open(filepath, 'w') as f:
        json.dump(enhanced_results, f, indent=2, default=str)

    summary_path = filepath.parent / f"{filepath.stem}_summary.txt"
    with open(summary_path, 'w') as f:
        f.write(create_results_summary(results))

    logging.info(f"Results saved to {filepath}")
    logging.info(f"Summary saved to {summary_path}")


def create_results_summary(results: Dict[str, Any]) -> str:
    summary = []
    summary.append("=" * 80)
    summary.append("ELECTION SIMULATION - RESULTS SUMMARY")
    summary.append("=" * 80)
    summary.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    summary.append("")

    if 'parameters' in results:
        summary.append("PARAMETERS:")
        for key, value in results['parameters'].items():
            summary.append(f"  {key}: {value}")
        summary.append("")

    if 'tally' in results:
        summary.append("ELECTION TALLY:")
        tally = results['tally']
        total_votes = sum(tally)
        for i, count in enumerate(tally):
            percentage = (count / total_votes * 100) if total_votes > 0 else 0
            summary.append(f"  Candidate {i + 1}: {count} votes ({percentage:.1f}%)")
        summary.append(f"  Total Selections: {total_votes}")
        summary.append("")

    if 'verification' in results:
        summary.append("VERIFICATION:")
        for check, passed in results['verification'].items():
            status = " PASSED" if passed else " FAILED"
            summary.append(f"  {check}: {status}")
        summary.append("")

    summary.append("=" * 80)
    return "\n".join(summary)


def create_performance_report(metrics: PerformanceMonitor) -> str:
    """Create detailed performance report from metrics"""
    summary = metrics.get_summary()

    report = []
    report.append("=" * 80)
    report.append("ELECTION SIMULATION - PERFORMANCE REPORT")
    report.append("=" * 80)
    report.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    report.append(f"Total Operations: {summary.get('total_operations', 0)}")
    report.append(f"Total Duration: {format_duration(summary.get('total_duration', 0.0))}")
    report.append("")

    if summary['operations']:
        report.append("OPERATION BREAKDOWN:")
        report.append("-" * 60)

        for op_name, op_data in summary['operations'].items():
            report.append(f"\n{op_name.upper()}:")
            report.append(f"  Executions: {op_data['count']}")
            report.append(f"  Total Time: {op_data['total_duration']:.3f}s")
            report.append(f"  Average Time: {op_data['avg_duration']:.4f}s")
            report.append(
                f"  Min/Max Time: {op_data['min_duration']:.4f}s / {op_data['max_duration']:.4f}s")
            report.append(f"  Std Deviation: {op_data['std_duration']:.4f}s")
            report.append(f"  Throughput: {op_data['throughput_ops_per_sec']:.2f} ops/sec")
            if op_data['peak_memory_mb'] > 0:
                report.append(f"  Peak Memory: {op_data['peak_memory_mb']:.1f} MB")
    else:
        report.append("No performance data available.")

    report.append("")
    report.append("=" * 80)
    return "\n".join(report)


def format_duration(seconds: float) -> str:
    """Format duration in human-readable format"""
    if seconds < 1:
        return f"{seconds*1000:.1f}ms"
    elif seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = seconds % 60
        return f"{minutes}m {secs:.1f}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        secs = seconds % 60
        return f"{hours}h {minutes}m {secs:.1f}s"
