import json
import os
import logging
import argparse
import sys

from sqlalchemy import create_engine

from core.config_loader import load_config
from core.scoring import ScoringService
from database.database import build_sessionmaker, db_session_scope
from database.init_db import init_db
from database.tenancy import describe_rules, open_tenant_scope

logger = logging.getLogger(__name__)


def configure_logging(config):
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format
    )


def cmd_init_db(config, args):
    engine = create_engine(config.database.url, pool_pre_ping=config.database.pool_pre_ping)
    init_db(engine)
    return 0


def cmd_score(config, args):
    """Score a job's pipeline for one tenant and print it best first."""
    session_factory = build_sessionmaker(config.database.url)
    with db_session_scope(session_factory) as session:
        gateway = open_tenant_scope(session, args.tenant_id, timeout=config.database.query_timeout_seconds)
        service = ScoringService(
            gateway,
            default_mode=config.scoring.default_hiring_mode,
            engine_version=config.scoring.engine_version,
        )
        scored = service.score_pipeline(args.job_id, stage=args.stage)

        if args.persist:
            for item in scored:
                service.score_and_record(item.application.id)
            logger.info(f"Recorded {len(scored)} scores for job {args.job_id}")

        for rank, item in enumerate(scored, start=1):
            name = "(anonymized)" if item.anonymized else item.application.full_name
            row = {
                "rank": rank,
                "application_id": item.application.id,
                "candidate": name,
                "stage": item.application.stage,
                "score": item.result.score,
                "tier": item.result.tier.value,
            }
            if args.verbose:
                row["rationale"] = item.result.rationale
            print(json.dumps(row))
    return 0


def cmd_scope_rules(config, args):
    for entity, rule in describe_rules().items():
        print(f"{entity:24} {rule}")
    return 0


def cmd_serve(config, args):
    os.environ.setdefault("CONFIG_PATH", args.config)
    from web.backend.app import main as serve
    serve()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ATS core - tenant-scoped scoring")
    parser.add_argument('--config', default='config.yaml', help='Path to config.yaml')
    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('init-db', help='Create tables (retries while the database starts)')
    p.set_defaults(func=cmd_init_db)

    p = sub.add_parser('score', help="Score a job's applications for one tenant")
    p.add_argument('--tenant-id', required=True)
    p.add_argument('--job-id', required=True)
    p.add_argument('--stage', default=None, help='Only applications in this stage')
    p.add_argument('--persist', action='store_true',
                   help='Store match_score/match_reason and write scoring events')
    p.add_argument('--verbose', action='store_true', help='Include rationale in the output')
    p.set_defaults(func=cmd_score)

    p = sub.add_parser('scope-rules', help='Print how each entity is scoped to a tenant')
    p.set_defaults(func=cmd_scope_rules)

    p = sub.add_parser('serve', help='Run the HTTP API')
    p.set_defaults(func=cmd_serve)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    configure_logging(config)
    return args.func(config, args)


if __name__ == "__main__":
    sys.exit(main())
