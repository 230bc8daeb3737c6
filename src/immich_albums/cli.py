"""Command line interface: one subcommand per pipeline stage."""

import argparse
import asyncio
import inspect
from collections.abc import Sequence
from datetime import date, timedelta
from pathlib import Path

from immich_albums.app_logging import configure_logging
from immich_albums.config import parse_split_dates
from immich_albums.containers import AppContainer, build_container
from immich_albums.services.clustering import ClusteringParams, MergeParams
from immich_albums.services.trips import TripCriteria

_RULE = "=" * 60


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"invalid date {value!r}; expected YYYY-MM-DD"
        ) from exc


async def cmd_discover(args: argparse.Namespace, container: AppContainer) -> int:
    if args.end_date < args.start_date:
        print("--end-date must not be before --start-date")
        return 2
    summary = await container.discovery_service.discover(
        args.start_date, args.end_date
    )
    print(f"Fetched {summary.fetched} photos, stored {summary.stored}")
    if summary.invalid:
        print(f"  Skipped {summary.invalid} photos with invalid timestamps")
    print(f"Found {len(summary.devices)} devices:")
    for device in summary.devices:
        label = f" -> {device.photographer}" if device.photographer else ""
        print(f"  {device.id}: {device.photo_count} photos{label}")
    print("\nNext: run 'label-devices' to assign photographers.")
    return 0


def cmd_label_devices(args: argparse.Namespace, container: AppContainer) -> int:
    service = container.device_service
    devices = service.list_devices()
    if not devices:
        print("No devices found. Run 'discover' first.")
        return 1
    pending = devices if args.all else [d for d in devices if not d.photographer]
    print(f"Total devices: {len(devices)}, unlabeled: {len(pending)}")
    if not pending:
        print("All devices are already labeled. Use --all to relabel.")
        return 0

    print("Enter the photographer name for each device (Enter to skip).")
    labeled = 0
    for index, device in enumerate(pending, start=1):
        print(f"\n[{index}/{len(pending)}] {device.make} {device.model} ({device.id})")
        print(f"  Photos: {device.photo_count}")
        if device.photographer:
            print(f"  Current photographer: {device.photographer}")
        try:
            name = input("  Photographer name: ").strip()
        except EOFError:
            break
        if not name:
            continue
        service.label_device(device.id, name)
        labeled += 1
    print(f"\nLabeled {labeled} devices.")
    return 0


def cmd_infer_locations(args: argparse.Namespace, container: AppContainer) -> int:
    summary = container.location_service.infer(min_confidence=args.min_confidence)
    if summary.labeled_devices == 0:
        print("No labeled devices. Run 'label-devices' first.")
        return 1
    print(f"Photos with GPS: {summary.photos_with_gps}")
    print(f"Photos without GPS: {summary.photos_without_gps}")
    print(f"Inferred {summary.inferred} locations, stored {summary.stored}")
    for label, count in summary.buckets.items():
        print(f"  {label}: {count}")
    return 0


def cmd_detect_sessions(args: argparse.Namespace, container: AppContainer) -> int:
    params = ClusteringParams(
        max_time_gap_hours=args.max_time_gap,
        max_distance_km=args.max_distance,
        min_photos=args.min_photos,
        min_confidence=args.min_confidence,
    )
    merge = (
        MergeParams(
            max_time_gap_hours=args.merge_time_gap,
            max_distance_km=args.merge_distance,
        )
        if args.merge
        else None
    )
    summary = container.session_service.detect(params, merge)
    if summary.located_photos == 0:
        print("No located photos. Run 'discover' and 'infer-locations' first.")
        return 1
    print(f"Located photos: {summary.located_photos}")
    print(f"Sessions detected: {summary.detected}, stored: {summary.stored}")
    print(f"Average photos per session: {summary.average_photos:.1f}")
    return 0


def cmd_detect_trips(args: argparse.Namespace, container: AppContainer) -> int:
    criteria = TripCriteria(
        min_distance_from_home_km=args.min_distance,
        max_session_gap=timedelta(hours=args.max_session_gap),
        min_duration=timedelta(hours=args.min_duration),
        min_sessions=args.min_sessions,
        max_home_stay=timedelta(hours=args.max_home_stay),
        split_dates=args.split_dates,
    )
    summary = container.trip_service.detect(criteria)
    if summary.sessions == 0:
        print("No sessions found. Run 'detect-sessions' first.")
        return 1
    print(f"Sessions: {summary.sessions} ({summary.away_sessions} away from home)")
    print(f"Detected {len(summary.trips)} trips")
    for trip in summary.trips:
        print(
            f"  {trip.name}: {trip.session_count} sessions, "
            f"{len(trip.photo_ids)} photos, ended by {trip.ended_by.value}"
        )
    return 0


async def cmd_create_albums(args: argparse.Namespace, container: AppContainer) -> int:
    summary = await container.album_service.create_albums(recreate=args.recreate)
    if summary.trips == 0:
        print("No trips found. Run 'detect-trips' first.")
        return 1
    print(_RULE)
    print(f"Total trips: {summary.trips}")
    print(f"  Albums created: {summary.created}")
    print(f"  Albums recreated: {summary.recreated}")
    print(f"  Albums skipped: {summary.skipped}")
    print(f"  Errors: {summary.errors}")
    return 1 if summary.errors else 0


def cmd_analyze(args: argparse.Namespace, container: AppContainer) -> int:
    report = container.analysis_service.coverage()
    print(_RULE)
    print("PHOTO COVERAGE ANALYSIS")
    print(_RULE)
    print(f"Total photos: {report.total_photos}")
    print(f"  With GPS: {report.with_gps}")
    print(f"  Without GPS: {report.without_gps}")
    if report.at_home is None:
        print("  At home: N/A (no home locations defined)")
    else:
        print(f"  At home: {report.at_home} ({report.share(report.at_home):.1f}%)")
    print(f"  In trips: {report.in_trips} ({report.share(report.in_trips):.1f}%)")
    print(
        f"  In sessions, not trips: {report.in_sessions_not_trips} "
        f"({report.share(report.in_sessions_not_trips):.1f}%)"
    )
    print(
        f"  Not in any session: {report.not_in_sessions} "
        f"({report.share(report.not_in_sessions):.1f}%)"
    )
    print(f"Sessions: {report.sessions}, trips: {report.trips}, homes: {report.homes}")
    for tip in report.recommendations:
        print(f"- {tip}")
    return 0


def cmd_export_seeds(args: argparse.Namespace, container: AppContainer) -> int:
    directory = Path(args.seeds_dir or container.settings.seeds_dir)
    counts = container.seed_service.export_seeds(directory)
    print(
        f"Exported {counts.homes} home locations and "
        f"{counts.device_labels} device labels to {directory}"
    )
    return 0


def cmd_import_seeds(args: argparse.Namespace, container: AppContainer) -> int:
    directory = Path(args.seeds_dir or container.settings.seeds_dir)
    try:
        counts = container.seed_service.import_seeds(directory)
    except FileNotFoundError as exc:
        print(f"Seed file missing: {exc.filename}")
        return 1
    print(
        f"Imported {counts.homes} home locations and "
        f"{counts.device_labels} device labels from {directory}"
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per stage."""
    ap = argparse.ArgumentParser(
        prog="immich-albums",
        description="Detect trips in an Immich library and create albums for them.",
    )
    sp = ap.add_subparsers(dest="command", required=True)

    ap_discover = sp.add_parser("discover", help="Fetch photos and resolve devices.")
    ap_discover.add_argument("--start-date", type=_iso_date, required=True)
    ap_discover.add_argument("--end-date", type=_iso_date, required=True)
    ap_discover.set_defaults(func=cmd_discover)

    ap_label = sp.add_parser("label-devices", help="Assign photographers to devices.")
    ap_label.add_argument(
        "--all", action="store_true", help="Include already labeled devices."
    )
    ap_label.set_defaults(func=cmd_label_devices)

    ap_infer = sp.add_parser("infer-locations", help="Infer missing GPS locations.")
    ap_infer.add_argument("--min-confidence", type=float, default=0.3)
    ap_infer.set_defaults(func=cmd_infer_locations)

    ap_sessions = sp.add_parser("detect-sessions", help="Group photos into sessions.")
    ap_sessions.add_argument(
        "--max-time-gap", type=float, default=6.0, help="Hours between photos."
    )
    ap_sessions.add_argument(
        "--max-distance", type=float, default=5.0, help="Kilometres between photos."
    )
    ap_sessions.add_argument("--min-photos", type=int, default=2)
    ap_sessions.add_argument("--min-confidence", type=float, default=0.3)
    ap_sessions.add_argument(
        "--merge", action="store_true", help="Merge sessions across photographers."
    )
    ap_sessions.add_argument("--merge-time-gap", type=float, default=2.0)
    ap_sessions.add_argument("--merge-distance", type=float, default=1.0)
    ap_sessions.set_defaults(func=cmd_detect_sessions)

    ap_trips = sp.add_parser("detect-trips", help="Group sessions into trips.")
    ap_trips.add_argument(
        "--min-distance", type=float, default=50.0, help="Kilometres from home."
    )
    ap_trips.add_argument(
        "--max-session-gap", type=float, default=48.0, help="Hours between sessions."
    )
    ap_trips.add_argument(
        "--min-duration", type=float, default=2.0, help="Minimum trip hours."
    )
    ap_trips.add_argument("--min-sessions", type=int, default=1)
    ap_trips.add_argument(
        "--max-home-stay",
        type=float,
        default=36.0,
        help="Hours at home before a trip is split.",
    )
    ap_trips.add_argument(
        "--split-date",
        action="append",
        default=[],
        dest="split_date",
        help="Force a trip split at YYYY-MM-DD; repeatable.",
    )
    ap_trips.set_defaults(func=cmd_detect_trips)

    ap_albums = sp.add_parser("create-albums", help="Create one album per trip.")
    ap_albums.add_argument(
        "--recreate", action="store_true", help="Delete and recreate existing albums."
    )
    ap_albums.set_defaults(func=cmd_create_albums)

    ap_analyze = sp.add_parser("analyze", help="Report photo coverage.")
    ap_analyze.set_defaults(func=cmd_analyze)

    for name, func, help_text in (
        ("export-seeds", cmd_export_seeds, "Back up homes and device labels."),
        ("import-seeds", cmd_import_seeds, "Restore homes and device labels."),
    ):
        ap_seeds = sp.add_parser(name, help=help_text)
        ap_seeds.add_argument("--seeds-dir", default=None)
        ap_seeds.set_defaults(func=func)

    return ap


def main(
    argv: Sequence[str] | None = None, container: AppContainer | None = None
) -> int:
    """Run the command line interface and return the exit code."""
    ap = build_parser()
    args = ap.parse_args(argv)
    if args.command == "detect-trips":
        try:
            args.split_dates = parse_split_dates(args.split_date)
        except ValueError as exc:
            ap.error(str(exc))

    configure_logging()
    return asyncio.run(_run(args, container))


async def _run(args: argparse.Namespace, container: AppContainer | None) -> int:
    owned = container is None
    resolved = container or build_container()
    try:
        result = args.func(args, resolved)
        if inspect.isawaitable(result):
            result = await result
        return result
    finally:
        if owned:
            await resolved.close_resources()


if __name__ == "__main__":
    raise SystemExit(main())
