#!/usr/bin/env python3
"""
Unified CLI for vehicle, fuel and service tracking.

Commands:
  vehicles       - List vehicles
  add-vehicle    - Add a vehicle
  remove-vehicle - Delete a vehicle with its fuel and service records
  log-fuel       - Record a fill-up (regional units)
  fuel           - List or search fuel entries
  log-service    - Record a service
  services       - List service records
  stats          - Spending and efficiency summary
  trends         - Monthly spending trend and projection
  compare        - Compare vehicles
  patterns       - Weekly and seasonal patterns
  recompute      - Re-derive stored efficiencies
  migrate        - Import the legacy key-value store
  rollback       - Restore the legacy store from the migration backup
"""

import argparse
import logging
import sys
from datetime import date
from tabulate import tabulate
from typing import List, Optional

from myventi import (
    EfficiencyUnit,
    FuelEntry,
    ServiceRecord,
    Vehicle,
    VehicleType,
    VentiError,
    analyze_seasonal_patterns,
    analyze_trend,
    analyze_weekly_patterns,
    compare_vehicles,
    create_context,
    format_efficiency,
    get_region,
    load_config,
    normalize_fuel_form,
    project_fuel_costs,
)
from myventi.region import RegionConfig, display_quantity

# =============================================================================
# Formatting helpers
# =============================================================================


def format_miles(miles: Optional[float]) -> str:
    """Format mileage for display."""
    return f"{miles:,.0f}" if miles is not None else "-"


def format_money(amount: Optional[float], symbol: str = "$") -> str:
    """Format a currency amount for display."""
    return f"{symbol}{amount:,.2f}" if amount is not None else "-"


def format_mpg(
    mpg: Optional[float],
    vehicle_type: VehicleType = VehicleType.GAS,
    unit: EfficiencyUnit = EfficiencyUnit.MPG,
) -> str:
    """Efficiency with units, or a dash when there is no basis to compute it."""
    if mpg is None:
        return "-"
    return format_efficiency(mpg, vehicle_type, unit)


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def make_vehicle_table(vehicles: List[Vehicle]) -> List[List[str]]:
    return [
        [v.id[:8], v.name, v.display_name, v.type.value, v.status.value]
        for v in vehicles
    ]


def make_fuel_table(
    entries: List[FuelEntry], vehicles: dict, region: RegionConfig
) -> List[List[str]]:
    """Convert fuel entries to table rows in the region's units."""
    rows = []
    for entry in entries:
        vehicle = vehicles.get(entry.vehicle_id)
        vehicle_type = vehicle.type if vehicle else VehicleType.GAS
        quantity = (
            f"{entry.quantity:,.2f} kWh"
            if vehicle_type == VehicleType.ELECTRIC
            else f"{display_quantity(entry.quantity, region):,.2f} {region.volume_abbreviation}"
        )
        rows.append(
            [
                entry.date,
                vehicle.name if vehicle else entry.vehicle_id[:8],
                quantity,
                format_money(entry.amount, region.currency_symbol),
                format_miles(entry.mileage),
                format_mpg(entry.mpg, vehicle_type, region.efficiency_unit),
                truncate(entry.fuel_station, 20),
            ]
        )
    return rows


def make_service_table(
    records: List[ServiceRecord], vehicles: dict, region: RegionConfig
) -> List[List[str]]:
    rows = []
    for record in records:
        vehicle = vehicles.get(record.vehicle_id)
        rows.append(
            [
                record.date,
                vehicle.name if vehicle else record.vehicle_id[:8],
                record.type,
                truncate(record.description),
                format_money(record.cost, region.currency_symbol),
                format_miles(record.mileage),
                "yes" if record.is_completed else "no",
            ]
        )
    return rows


def region_of(ctx, args) -> RegionConfig:
    """--region if given, else the stored region setting."""
    return get_region(args.region) if args.region else ctx.region


def resolve_vehicle_id(ctx, prefix: str) -> str:
    """Accept a full id or an unambiguous id prefix."""
    matches = [v.id for v in ctx.vehicles.get_all() if v.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    return prefix


# =============================================================================
# Vehicle commands
# =============================================================================


def cmd_vehicles(ctx, args):
    """List vehicles."""
    vehicles = ctx.vehicles.get_all()
    if not vehicles:
        print("No vehicles.")
        return 0
    headers = ["Id", "Name", "Vehicle", "Type", "Status"]
    print(tabulate(make_vehicle_table(vehicles), headers=headers, tablefmt="simple"))
    return 0


def cmd_add_vehicle(ctx, args):
    """Add a vehicle."""
    vehicle = ctx.vehicles.create(
        {
            "name": args.name,
            "year": args.year,
            "make": args.make,
            "model": args.model,
            "type": args.type,
        }
    )
    print(f"Added {vehicle.name} ({vehicle.display_name}), id {vehicle.id}")
    return 0


def cmd_remove_vehicle(ctx, args):
    """Delete a vehicle and everything recorded for it."""
    vehicle_id = resolve_vehicle_id(ctx, args.vehicle_id)
    vehicle = ctx.vehicles.require(vehicle_id)
    if args.dry_run:
        fuel = len(ctx.fuel.get_by_vehicle_id(vehicle_id))
        services = len(ctx.services.get_by_vehicle_id(vehicle_id))
        print(f"Would delete {vehicle.name} with {fuel} fuel entries and {services} service records")
        print("(dry run - no changes made)")
        return 0
    ctx.vehicles.delete(vehicle_id)
    print(f"Deleted {vehicle.name}.")
    return 0


# =============================================================================
# Fuel commands
# =============================================================================


def cmd_log_fuel(ctx, args):
    """Record a fill-up entered in the region's units."""
    region = region_of(ctx, args)
    vehicle = ctx.vehicles.require(resolve_vehicle_id(ctx, args.vehicle_id))
    form = normalize_fuel_form(
        {
            "vehicle_id": vehicle.id,
            "date": args.date or date.today().isoformat(),
            "amount": args.amount,
            "quantity": args.quantity,
            "price_per_unit": args.price,
            "mileage": args.mileage,
            "fuel_station": args.station,
            "notes": args.notes,
            "electric": vehicle.is_electric,
        },
        region,
    )
    entry = ctx.fuel.create(form)
    vehicles = {vehicle.id: vehicle}
    headers = ["Date", "Vehicle", "Quantity", "Amount", "Odometer", "Efficiency", "Station"]
    print(tabulate(make_fuel_table([entry], vehicles, region), headers=headers, tablefmt="simple"))
    print("Entry saved.")
    return 0


def cmd_fuel(ctx, args):
    """List fuel entries, optionally filtered."""
    vehicle_id = resolve_vehicle_id(ctx, args.vehicle) if args.vehicle else None
    entries = ctx.fuel.search(
        vehicle_id=vehicle_id,
        start_date=args.since,
        end_date=args.until,
        fuel_station=args.station,
        search_term=args.search,
    )
    if not entries:
        print("No fuel entries found.")
        return 0
    vehicles = {v.id: v for v in ctx.vehicles.get_all()}
    region = region_of(ctx, args)
    headers = ["Date", "Vehicle", "Quantity", "Amount", "Odometer", "Efficiency", "Station"]
    print(tabulate(make_fuel_table(entries, vehicles, region), headers=headers, tablefmt="simple"))
    total = sum(e.amount for e in entries)
    print()
    print(f"Entries: {len(entries)}  Total: {format_money(total, region.currency_symbol)}")
    return 0


# =============================================================================
# Service commands
# =============================================================================


def cmd_log_service(ctx, args):
    """Record a service."""
    record = ctx.services.create(
        {
            "vehicle_id": resolve_vehicle_id(ctx, args.vehicle_id),
            "date": args.date or date.today().isoformat(),
            "type": args.type,
            "description": args.description,
            "cost": args.cost,
            "mileage": args.mileage,
            "notes": args.notes,
        }
    )
    cost = format_money(record.cost, region_of(ctx, args).currency_symbol)
    print(f"Service recorded: {record.type} on {record.date} ({cost})")
    return 0


def cmd_services(ctx, args):
    """List service records."""
    if args.vehicle:
        records = ctx.services.get_by_vehicle_id(resolve_vehicle_id(ctx, args.vehicle))
    else:
        records = ctx.services.get_all()
    if not records:
        print("No service records found.")
        return 0
    vehicles = {v.id: v for v in ctx.vehicles.get_all()}
    headers = ["Date", "Vehicle", "Type", "Description", "Cost", "Mileage", "Done"]
    rows = make_service_table(records, vehicles, region_of(ctx, args))
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Analytics commands
# =============================================================================


def cmd_stats(ctx, args):
    """Spending and efficiency summary."""
    region = region_of(ctx, args)
    summary = ctx.fuel.get_analytics_summary(args.since, args.until)
    dashboard = ctx.dashboard.get_summary()
    print(f"Vehicles: {dashboard.total_vehicles} ({dashboard.active_vehicles} active)")
    print(f"This month: {format_money(dashboard.monthly_fuel_cost, region.currency_symbol)}")
    print()
    rows = [
        ["Fill-ups", summary.trips_count],
        ["Total cost", format_money(summary.total_cost, region.currency_symbol)],
        ["Total fuel", f"{display_quantity(summary.total_fuel, region):,.2f} {region.volume_abbreviation}"],
        ["Average efficiency", format_mpg(summary.average_mpg or None, unit=region.efficiency_unit)],
        ["Average per fill-up", format_money(summary.average_cost_per_trip, region.currency_symbol)],
    ]
    print(tabulate(rows, tablefmt="simple"))
    return 0


def cmd_trends(ctx, args):
    """Monthly spending with a simple projection."""
    region = region_of(ctx, args)
    trends = ctx.fuel.get_monthly_trends(args.months)
    rows = [
        [t.month, t.trips, format_money(t.cost, region.currency_symbol), t.average_mpg or "-"]
        for t in trends
    ]
    print(tabulate(rows, headers=["Month", "Fill-ups", "Cost", "Avg MPG"], tablefmt="simple"))

    costs = [t.cost for t in trends]
    trend = analyze_trend(costs, [f"{t.month}-01" for t in trends])
    print()
    print(f"Trend: {trend.trend.value} ({trend.change_rate:+.2f}/month, {trend.confidence}% confidence, {trend.period})")
    projection = project_fuel_costs(costs, args.project)
    if projection.projections:
        values = ", ".join(format_money(p, region.currency_symbol) for p in projection.projections)
        print(f"Projection: {values} ({projection.confidence}% confidence)")
    return 0


def cmd_compare(ctx, args):
    """Compare vehicles by spend and efficiency."""
    region = region_of(ctx, args)
    totals = ctx.fuel.get_vehicle_comparison(args.since, args.until)
    if not totals:
        print("No fuel entries found.")
        return 0
    rows = [
        [
            t.vehicle_name,
            t.trips_count,
            format_money(t.total_cost, region.currency_symbol),
            format_money(t.average_cost_per_trip, region.currency_symbol),
            t.average_mpg or "-",
        ]
        for t in totals
    ]
    headers = ["Vehicle", "Fill-ups", "Total", "Per fill-up", "Avg MPG"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))

    comparisons = compare_vehicles(ctx.fuel.get_all(), ctx.vehicles.get_all())
    if comparisons:
        print()
        rows = [
            [
                c.vehicle_name,
                c.statistics.min,
                c.statistics.mean,
                c.statistics.max,
                c.trend.trend.value,
                c.efficiency.cost_per_mile,
            ]
            for c in comparisons
        ]
        headers = ["Vehicle", "Worst MPG", "Avg MPG", "Best MPG", "Trend", "Cost/mi"]
        print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_patterns(ctx, args):
    """Weekly and seasonal fill-up patterns."""
    entries = ctx.fuel.get_all()
    if not entries:
        print("No fuel entries found.")
        return 0
    weekly = analyze_weekly_patterns(entries)
    rows = [[p.day_name, p.trip_frequency, p.average_consumption, p.average_cost] for p in weekly]
    print(tabulate(rows, headers=["Day", "Fill-ups", "Avg quantity", "Avg cost"], tablefmt="simple"))
    print()
    seasonal = analyze_seasonal_patterns(entries)
    rows = [
        [s.season, s.average_mpg, s.average_cost, format_miles(s.total_distance), f"{s.efficiency_change:+.2f}%"]
        for s in seasonal
    ]
    headers = ["Season", "Avg MPG", "Avg cost", "Distance (mi)", "vs. overall"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_recompute(ctx, args):
    """Re-derive every stored efficiency."""
    vehicle_id = resolve_vehicle_id(ctx, args.vehicle) if args.vehicle else None
    changed = ctx.fuel.reconcile_efficiency(vehicle_id)
    print(f"Updated {changed} entries.")
    return 0


# =============================================================================
# Migration commands
# =============================================================================


def cmd_migrate(ctx, args):
    """Import the legacy key-value store."""
    importer = ctx.migration_importer()
    if importer.migrate():
        print("Migration completed.")
        if args.clear_backup:
            importer.clear_backup()
            print("Backup cleared.")
    else:
        print("Migration already completed.")
    return 0


def cmd_rollback(ctx, args):
    """Restore the legacy store from the migration backup."""
    ctx.migration_importer().rollback()
    print("Legacy store restored from backup.")
    return 0


# =============================================================================
# Main
# =============================================================================

COMMANDS = {
    "vehicles": cmd_vehicles,
    "add-vehicle": cmd_add_vehicle,
    "remove-vehicle": cmd_remove_vehicle,
    "log-fuel": cmd_log_fuel,
    "fuel": cmd_fuel,
    "log-service": cmd_log_service,
    "services": cmd_services,
    "stats": cmd_stats,
    "trends": cmd_trends,
    "compare": cmd_compare,
    "patterns": cmd_patterns,
    "recompute": cmd_recompute,
    "migrate": cmd_migrate,
    "rollback": cmd_rollback,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Vehicle fuel and service tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s add-vehicle "Daily" 2020 Toyota Camry --type gas
  %(prog)s log-fuel 3f2a --quantity 40 --price 10000 --mileage 15200
  %(prog)s fuel --since 2024-01-01 --station shell
  %(prog)s stats --since 2024-01-01
  %(prog)s --engine memory vehicles
  %(prog)s --legacy legacy.yaml migrate
""",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--db", dest="db_path", help="SQLite database file")
    parser.add_argument("--engine", choices=["sqlite", "memory"], help="Storage engine")
    parser.add_argument("--region", help="Region code (US or ID)")
    parser.add_argument("--legacy", dest="legacy_path", help="Legacy key-value YAML file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("vehicles", help="List vehicles")

    add_parser = subparsers.add_parser("add-vehicle", help="Add a vehicle")
    add_parser.add_argument("name", help="Display name")
    add_parser.add_argument("year", type=int, help="Model year")
    add_parser.add_argument("make", help="Make (e.g., 'Toyota')")
    add_parser.add_argument("model", help="Model (e.g., 'Camry')")
    add_parser.add_argument("--type", choices=[t.value for t in VehicleType], default="gas")

    remove_parser = subparsers.add_parser("remove-vehicle", help="Delete a vehicle")
    remove_parser.add_argument("vehicle_id", help="Vehicle id or id prefix")
    remove_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be deleted without deleting"
    )

    fuel_log_parser = subparsers.add_parser("log-fuel", help="Record a fill-up")
    fuel_log_parser.add_argument("vehicle_id", help="Vehicle id or id prefix")
    fuel_log_parser.add_argument("--date", help="Fill date in YYYY-MM-DD format (default: today)")
    fuel_log_parser.add_argument("--amount", type=float, help="Total paid")
    fuel_log_parser.add_argument("--quantity", type=float, help="Fuel quantity (regional volume unit, or kWh)")
    fuel_log_parser.add_argument("--price", type=float, help="Price per unit")
    fuel_log_parser.add_argument("--mileage", type=int, required=True, help="Odometer reading (regional distance unit)")
    fuel_log_parser.add_argument("--station", help="Fuel station")
    fuel_log_parser.add_argument("--notes", help="Notes")

    fuel_parser = subparsers.add_parser("fuel", help="List or search fuel entries")
    fuel_parser.add_argument("--vehicle", help="Vehicle id or id prefix")
    fuel_parser.add_argument("--since", help="Only entries on or after date (YYYY-MM-DD)")
    fuel_parser.add_argument("--until", help="Only entries on or before date (YYYY-MM-DD)")
    fuel_parser.add_argument("--station", help="Station name contains text (case-insensitive)")
    fuel_parser.add_argument("--search", help="Notes or station contain text (case-insensitive)")

    service_log_parser = subparsers.add_parser("log-service", help="Record a service")
    service_log_parser.add_argument("vehicle_id", help="Vehicle id or id prefix")
    service_log_parser.add_argument("type", help="Service type (e.g., 'Oil Change')")
    service_log_parser.add_argument("description", help="What was done")
    service_log_parser.add_argument("--cost", type=float, required=True, help="Cost of service")
    service_log_parser.add_argument("--mileage", type=int, required=True, help="Odometer reading")
    service_log_parser.add_argument("--date", help="Service date in YYYY-MM-DD format (default: today)")
    service_log_parser.add_argument("--notes", help="Notes about the service")

    services_parser = subparsers.add_parser("services", help="List service records")
    services_parser.add_argument("--vehicle", help="Vehicle id or id prefix")

    for name, help_text in (("stats", "Spending summary"), ("compare", "Compare vehicles")):
        range_parser = subparsers.add_parser(name, help=help_text)
        range_parser.add_argument("--since", help="Start date (YYYY-MM-DD)")
        range_parser.add_argument("--until", help="End date (YYYY-MM-DD)")

    trends_parser = subparsers.add_parser("trends", help="Monthly trend")
    trends_parser.add_argument("--months", type=int, default=12, help="Months to show (default: 12)")
    trends_parser.add_argument("--project", type=int, default=6, help="Months to project (default: 6)")

    subparsers.add_parser("patterns", help="Weekly and seasonal patterns")

    recompute_parser = subparsers.add_parser("recompute", help="Re-derive stored efficiencies")
    recompute_parser.add_argument("--vehicle", help="Only this vehicle")

    migrate_parser = subparsers.add_parser("migrate", help="Import the legacy store")
    migrate_parser.add_argument(
        "--clear-backup", action="store_true", help="Remove the backup after a successful import"
    )

    subparsers.add_parser("rollback", help="Restore the legacy store from backup")
    return parser


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides = {
        key: getattr(args, key)
        for key in ("db_path", "engine", "region", "legacy_path")
        if getattr(args, key) is not None
    }
    try:
        config = load_config(args.config, **overrides)
        get_region(config.region)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    ctx = create_context(config)
    try:
        return COMMANDS[args.command](ctx, args)
    except VentiError as e:
        print(f"Error: {e}")
        errors = getattr(e, "errors", None)
        if errors:
            for field, message in errors.items():
                print(f"  {field}: {message}")
        return 1
    finally:
        ctx.close()


if __name__ == "__main__":
    sys.exit(main() or 0)
