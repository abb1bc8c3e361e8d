"""CityWise CLI — checklist, property report and seeding commands."""

import asyncio
import sys

from citywise.observability.logging import setup_logging


def _configure_logging() -> None:
    setup_logging(json_format=False)


def main() -> None:
    """Print a project checklist: citywise <project_type> <description...>"""
    _configure_logging()

    if len(sys.argv) < 3:
        print("Usage: citywise <project_type> <description...>")
        print('  Example: citywise ADU "900 sq ft casita with a bathroom and a 200 amp panel upgrade"')
        sys.exit(1)

    from citywise.core.errors import RuleSetUnavailable
    from citywise.core.types import RawIntake
    from citywise.requirements.engineering import engineering_disciplines
    from citywise.requirements.extractor import extract_attributes
    from citywise.requirements.resolver import permit_checklist, resolve

    intake = RawIntake(project_type=sys.argv[1], conversation=" ".join(sys.argv[2:]))
    attrs = extract_attributes(intake)

    print(f"\nProject: {attrs.project_type.value if attrs.project_type else 'unknown'} in {attrs.jurisdiction}")
    print(f"  Square footage: {attrs.square_footage if attrs.square_footage is not None else 'unknown'}")
    print(f"  Structural: {attrs.structural_changes}  Plumbing: {attrs.plumbing_work}  "
          f"Electrical: {attrs.electrical_work}"
          + (f" ({attrs.electrical_service_amps:g}A)" if attrs.electrical_service_amps else ""))

    try:
        requirements = resolve(attrs)
        permits = permit_checklist(attrs)
    except RuleSetUnavailable as e:
        print(f"\nError: {e}")
        sys.exit(2)

    print(f"\nRequirements ({len(requirements)}):")
    for i, req in enumerate(requirements, 1):
        print(f"  {i}. {req.name} [{req.discipline.value}] — {req.description}")

    print(f"\nPermits ({len(permits)}):")
    for req in permits:
        print(f"  - {req.name}")

    print("\nProject team:")
    for d in engineering_disciplines(attrs):
        print(f"  - {d.discipline}: {d.notes}")


def report_main() -> None:
    """Print a reconciled property report: citywise-report <apn> [address]"""
    _configure_logging()

    if len(sys.argv) < 2:
        print("Usage: citywise-report <apn> [address]")
        print('  Example: citywise-report 123-45-678 "123 E Main St, Phoenix, AZ"')
        sys.exit(1)

    from citywise.pipeline.property_report import build_property_report

    apn = sys.argv[1]
    address = " ".join(sys.argv[2:]) or None
    report = asyncio.run(build_property_report(apn, address))

    print(f"\nProperty report for APN {report.apn}")
    print(f"  Assessor: {'found' if report.assessor_found else 'not found'}   "
          f"Regrid: {'found' if report.regrid_found else 'not found'}\n")
    for name, f in report.fields.items():
        flag = "  CONFLICT" if f.has_conflict else ""
        print(f"  {name:<20} {str(f.value):<40} ({f.source.value}){flag}")
        if f.has_conflict:
            print(f"  {'':<20} assessor={f.assessor_value!r} regrid={f.regrid_value!r}")

    conflicts = report.conflicts()
    if conflicts:
        print(f"\n{len(conflicts)} field(s) need review: {', '.join(conflicts)}")


def seed_main() -> None:
    """Create tables and load the built-in rule tables: citywise-seed"""
    _configure_logging()

    async def _run() -> dict[str, int]:
        from citywise.storage.db import dispose_db, get_session, init_db
        from citywise.storage.repository import seed_reference_data

        await init_db()
        session = await get_session()
        try:
            counts = await seed_reference_data(session)
            await session.commit()
            return counts
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
            await dispose_db()

    counts = asyncio.run(_run())
    print(f"Seeded {counts['rules']} rules and {counts['zoning_rules']} zoning rules")
