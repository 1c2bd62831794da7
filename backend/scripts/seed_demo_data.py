from __future__ import annotations

from datetime import datetime, timezone

from goldpulse.db.base import Base
from goldpulse.db.session import SessionLocal, engine
import goldpulse.models  # noqa: F401
from goldpulse.services.analytics import compute_analytics
from goldpulse.services.formatting import format_currency, format_pct
from goldpulse.services.record_loader import load_retailer_records
from goldpulse.services.records import Period
from goldpulse.services.seed import seed_demo_data


def main() -> None:
    Base.metadata.create_all(bind=engine)
    today = datetime.now(timezone.utc).date()
    with SessionLocal() as db:
        retailer = seed_demo_data(db, today=today)
        report = compute_analytics(retailer.id, Period.current_month(today), load_retailer_records(db, retailer.id))
    summary = report.result.summary
    print(f"Demo retailer {retailer.code} (id={retailer.id}) ready.")
    print(f"Collections this month: {format_currency(summary.period_collections)}")
    print(f"Portfolio value: {format_currency(summary.portfolio_value)}")
    print(f"Growth rate: {format_pct(report.result.xirr_pct)} ({report.diagnostics.xirr_status})")


if __name__ == "__main__":
    main()
