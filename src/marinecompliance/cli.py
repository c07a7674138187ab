"""Marine compliance CLI: run one analysis from the terminal."""

import argparse
import asyncio
import sys

from marinecompliance.config import settings
from marinecompliance.core.errors import AnalysisError, ValidationError
from marinecompliance.core.types import API_TYPES, CanonicalAnalysis, format_location
from marinecompliance.observability.logging import bind_correlation_id, setup_logging
from marinecompliance.observability.tracing import init_tracking


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marinecompliance",
        description="Check regulatory compliance for a marine infrastructure project.",
        epilog='Example: marinecompliance 32.0853 34.7818 breakwater',
    )
    parser.add_argument("lat", help="Latitude (-90..90)")
    parser.add_argument("lon", help="Longitude (-180..180)")
    parser.add_argument("project_type", help="Structure type, e.g. breakwater, pier, seawall")
    parser.add_argument("--project-id", default=None, help="Dashboard project id")
    parser.add_argument("--prefer", choices=API_TYPES, default=None, help="Preferred compliance source")
    parser.add_argument("--force", choices=API_TYPES, default=None, help="Skip selection and use this source first")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Run a compliance analysis: marinecompliance <lat> <lon> <project_type>"""
    args = _parser().parse_args(argv)
    setup_logging(json_format=False, level=settings.log_level)
    init_tracking(settings.mlflow_tracking_uri, settings.mlflow_experiment_name)

    with bind_correlation_id():
        code = asyncio.run(_analyze(args))
    sys.exit(code)


async def _analyze(args: argparse.Namespace) -> int:
    from marinecompliance.pipeline.compliance import ComplianceOrchestrator

    orchestrator = ComplianceOrchestrator()
    if args.prefer:
        orchestrator.set_api_preference(args.prefer)

    print("\nMarine Compliance Analysis")
    print(f"{'=' * 50}")

    status = await orchestrator.check_system_status()
    enhanced = "available" if status.enhanced_compliance else "unavailable"
    print(f"System status:     {status.status} (enhanced compliance {enhanced})")
    if status.error:
        print(f"  {status.error}")

    params = {
        "lat": args.lat,
        "lon": args.lon,
        "projectType": args.project_type,
        "projectId": args.project_id,
    }
    try:
        analysis = await orchestrator.check_compliance(params, api_type=args.force)
    except ValidationError as e:
        print(f"\nInvalid input: {e.message}")
        return 2
    except AnalysisError as e:
        print(f"\nCompliance analysis failed: {e.message}")
        print(f"  ({e.primary.api_type}: {e.primary.kind}, {e.fallback.api_type}: {e.fallback.kind})")
        return 1

    if analysis is None:
        print("\nAn identical analysis is already running.")
        return 0
    print_analysis(analysis)
    return 0


def print_analysis(analysis: CanonicalAnalysis) -> None:
    risk = analysis.risk_summary
    print(f"Location:          {format_location(analysis.location)}")
    if analysis.location.name:
        print(f"                   {analysis.location.name}")
    print(f"Data source:       {analysis.api_type}")
    print()

    print(f"{'─' * 50}")
    print(f"OVERALL RISK: {risk.overall_risk}")
    print(
        f"Permits: {risk.total_permits}   High risk: {risk.high_risk_items}   "
        f"Medium risk: {risk.medium_risk_items}   Low risk: {risk.low_risk_items}"
    )
    if risk.score:
        print(f"Compliance score: {risk.score:g}")
    if risk.description:
        print(risk.description)
    if risk.factors:
        print("Risk factors:")
        for factor in risk.factors:
            print(f"  - {factor}")
    print(f"{'─' * 50}")
    print()

    if analysis.rules:
        print(f"Applicable rules ({len(analysis.rules)}):")
        for rule in analysis.rules:
            authority = f" ({rule.authority})" if rule.authority else ""
            print(f"  [{rule.risk_level}] {rule.name}{authority}, {rule.status}")
            for req in rule.requirements[:3]:
                print(f"      · {req}")
            if len(rule.requirements) > 3:
                print(f"      ... and {len(rule.requirements) - 3} more")
        print()

    if analysis.recommendations:
        print("Recommendations:")
        for rec in analysis.recommendations:
            print(f"  - {rec}")
        print()

    if analysis.timeline.estimated_weeks:
        print(f"Estimated permitting timeline: {analysis.timeline.estimated_weeks} weeks")
    if analysis.deadlines:
        print(f"Upcoming deadlines: {len(analysis.deadlines)}")


if __name__ == "__main__":
    main()
