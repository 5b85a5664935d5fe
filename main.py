#!/usr/bin/env python3
"""
卫星过境预报命令行入口

Usage:
    python main.py --tle stations.txt --lat 39.9 --lon 116.4 --days 2
    python main.py --tle stations.txt --lat 0 --lon 0 --visibility naked_eye --json
    python main.py --help
"""

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

# 添加项目路径
sys.path.insert(0, str(Path(__file__).parent))

from core.models import ObserverLocation, Pass, PassRequest, PassTarget, VisibilityClass
from core.orbit.epoch import current_epoch, datetime_to_epoch, epoch_to_datetime
from core.orbit.visibility import PassPredictionEngine
from utils.config_loader import ConfigLoadError, ConfigValidationError, load_engine_config
from utils.json_utils import dumps
from utils.logger import LoggerConfigError, configure_logging
from utils.tle_reader import load_tle_file

logger = logging.getLogger("main")


def parse_start(value: Optional[str]) -> float:
    """ISO格式时间（默认UTC）转纪元，None为当前时刻"""
    if not value:
        return current_epoch()
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return datetime_to_epoch(dt)


def build_request(args, objects, propagator: str) -> PassRequest:
    """由命令行参数构造预报请求"""
    observer = ObserverLocation(latitude=args.lat, longitude=args.lon,
                                altitude=args.alt, name="observer")
    targets = tuple(PassTarget.from_object(obj, color_index=i) for i, obj in enumerate(objects))
    return PassRequest(
        observer=observer,
        targets=targets,
        start_epoch=parse_start(args.start),
        duration_days=args.days,
        min_elevation=args.min_el,
        max_elevation=args.max_el,
        az_min=args.az_min,
        az_max=args.az_max,
        min_duration_sec=args.min_duration,
        visibility=VisibilityClass(args.visibility),
        propagator=args.propagator or propagator,
    )


def _fmt_time(epoch: float) -> str:
    return epoch_to_datetime(epoch).strftime("%m-%d %H:%M:%S")


def print_pass_table(passes: List[Pass], console: Console) -> None:
    """以表格形式输出过境列表"""
    if not passes:
        console.print("[yellow]No passes found[/yellow]")
        return

    table = Table(title=f"Predicted passes ({len(passes)})")
    table.add_column("Satellite", style="cyan")
    table.add_column("AOS (UTC)")
    table.add_column("TCA (UTC)")
    table.add_column("LOS (UTC)")
    table.add_column("Max El", justify="right")
    table.add_column("Az AOS→LOS", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Mag", justify="right")
    table.add_column("Sun Alt", justify="right")

    for p in passes:
        minutes, seconds = divmod(int(round(p.duration_sec)), 60)
        magnitude = "-" if p.peak_magnitude is None else f"{p.peak_magnitude:.1f}"
        if p.eclipsed:
            magnitude = "[dim]shadow[/dim]"
        table.add_row(
            p.sat_name,
            _fmt_time(p.aos_epoch),
            _fmt_time(p.max_el_epoch),
            _fmt_time(p.los_epoch),
            f"{p.max_el:.1f}°",
            f"{p.aos_az:.0f}°→{p.los_az:.0f}°",
            f"{minutes}m{seconds:02d}s",
            magnitude,
            f"{p.sun_alt:.1f}°",
        )

    console.print(table)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='卫星过境预报',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  # 预报未来两天北京上空的过境
  python main.py --tle stations.txt --lat 39.9 --lon 116.4 --days 2

  # 只保留肉眼可见的过境，输出JSON
  python main.py --tle visual.txt --lat 51.5 --lon -0.1 --visibility naked_eye --json
        """
    )
    parser.add_argument('--tle', '-t', required=True, help='TLE文件路径（两行或三行格式）')
    parser.add_argument('--lat', type=float, required=True, help='观测者纬度（度）')
    parser.add_argument('--lon', type=float, required=True, help='观测者经度（度）')
    parser.add_argument('--alt', type=float, default=0.0, help='观测者海拔（米）')
    parser.add_argument('--start', help='开始时间（ISO格式，默认当前UTC时间）')
    parser.add_argument('--days', type=float, default=1.0, help='扫描时长（天）')
    parser.add_argument('--min-el', type=float, default=10.0, help='最大仰角下限（度）')
    parser.add_argument('--max-el', type=float, default=90.0, help='最大仰角上限（度）')
    parser.add_argument('--az-min', type=float, default=0.0, help='方位窗口起点（度）')
    parser.add_argument('--az-max', type=float, default=360.0, help='方位窗口终点（度，可跨0°）')
    parser.add_argument('--min-duration', type=float, default=0.0, help='最短可见时长（秒）')
    parser.add_argument('--visibility', default='any',
                        choices=[v.value for v in VisibilityClass], help='可见性等级')
    parser.add_argument('--propagator', choices=['sgp4', 'analytic'], help='传播策略（覆盖配置）')
    parser.add_argument('--config', '-c', help='配置文件路径（YAML/JSON）')
    parser.add_argument('--log-level', help='日志级别（覆盖配置）')
    parser.add_argument('--json', action='store_true', help='以JSON格式输出结果')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """主入口"""
    args = create_parser().parse_args(argv)
    console = Console()
    error_console = Console(stderr=True)

    try:
        config = load_engine_config(args.config)
        configure_logging(
            level=args.log_level or config.logging.level,
            fmt=config.logging.format,
            log_file=config.logging.file,
        )

        objects = load_tle_file(args.tle)
        if not objects:
            error_console.print(f"[red]No valid TLE records in {args.tle}[/red]")
            return 1

        logger.info(f"Observer at ({args.lat}, {args.lon}), {len(objects)} objects, {args.days:g} days")
        request = build_request(args, objects, config.propagator)
        engine = PassPredictionEngine(config.predictor)
        passes = engine.predict(request)
    except (ConfigLoadError, ConfigValidationError, LoggerConfigError) as e:
        error_console.print(f"[red]Configuration error:[/red] {e}")
        return 2
    except (OSError, ValueError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        return 1

    if args.json:
        print(dumps([p.to_dict() for p in passes]))
    else:
        print_pass_table(passes, console)
    return 0


if __name__ == '__main__':
    sys.exit(main())
