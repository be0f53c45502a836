"""
Read-only dashboard: job counts by status and the most recent jobs.
"""

from html import escape

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from workqueue.api.dependencies import Service
from workqueue.constants import DASHBOARD_PREFIX, JobStatus
from workqueue.types.api import DashboardResponse, JobSummaryResponse
from workqueue.types.job import JobSummary

router = APIRouter(prefix=DASHBOARD_PREFIX, tags=["Dashboard"])

# Characters of the job id shown in the table
ID_PREFIX_LENGTH = 8

STATUS_COLORS: dict[str, str] = {
    JobStatus.WAITING: "#a16207",
    JobStatus.ACTIVE: "#1d4ed8",
    JobStatus.COMPLETED: "#15803d",
    JobStatus.FAILED: "#b91c1c",
}

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Queue Dashboard</title>
<style>
body {{ font-family: sans-serif; max-width: 56rem; margin: 2rem auto; }}
.tiles {{ display: flex; gap: 1rem; margin-bottom: 1.5rem; }}
.tile {{ padding: 0.75rem; border-radius: 0.25rem; background: #f3f4f6; }}
table {{ width: 100%; border-collapse: collapse; }}
th, td {{ padding: 0.5rem; border-bottom: 1px solid #e5e7eb; text-align: left; }}
td.id {{ font-family: monospace; }}
</style>
</head>
<body>
<h1>Queue Dashboard</h1>
<div class="tiles">
{tiles}
</div>
<table>
<thead><tr><th>ID</th><th>Type</th><th>Status</th><th>Created</th></tr></thead>
<tbody>
{rows}
</tbody>
</table>
</body>
</html>
"""


def render_dashboard(counts: dict[str, int], jobs: list[JobSummary]) -> str:
    """Render the dashboard page as HTML."""
    tiles = "\n".join(
        f'<div class="tile">{escape(status.value.capitalize())}: {counts.get(status.value, 0)}</div>'
        for status in JobStatus
    )
    rows = "\n".join(
        "<tr>"
        f'<td class="id">{escape(str(job.id)[:ID_PREFIX_LENGTH])}</td>'
        f"<td>{escape(job.type)}</td>"
        f'<td style="color: {STATUS_COLORS.get(job.status, "#000")}">{escape(job.status)}</td>'
        f"<td>{escape(job.created_at.isoformat(sep=' ', timespec='seconds'))}</td>"
        "</tr>"
        for job in jobs
    )
    return PAGE_TEMPLATE.format(tiles=tiles, rows=rows)


@router.get(
    "",
    response_class=HTMLResponse,
    summary="Queue dashboard",
    description="HTML overview of job counts and recent jobs.",
)
async def dashboard(service: Service) -> HTMLResponse:
    counts = await service.counts_by_status()
    jobs = await service.recent_jobs()
    return HTMLResponse(render_dashboard(counts, jobs))


@router.get(
    "/data",
    response_model=DashboardResponse,
    summary="Queue dashboard data",
    description="Job counts by status and the most recent jobs as JSON.",
)
async def dashboard_data(service: Service) -> DashboardResponse:
    counts = await service.counts_by_status()
    jobs = await service.recent_jobs()
    return DashboardResponse(
        counts=counts,
        jobs=[
            JobSummaryResponse(
                id=job.id,
                type=job.type,
                status=job.status,
                created_at=job.created_at,
            )
            for job in jobs
        ],
    )
