"""Job catalog: the ordered list of open postings, loaded once from CSV."""

import csv
import logging
from collections.abc import Iterator
from pathlib import Path

from src.core.schemas import JobPosting, SeniorityLevel, fold_text

logger = logging.getLogger(__name__)

# CSV header -> JobPosting field. Portuguese headers are what the recruiters export.
_COLUMN_ALIASES: dict[str, str] = {
    "nome_vaga": "title",
    "title": "title",
    "senioridade": "seniority",
    "seniority": "seniority",
    "localizacao": "location",
    "location": "location",
    "descricao": "description",
    "description": "description",
}


class JobCatalog:
    """Read-only, ordered collection of job postings.

    A posting's identity is its position in the catalog, so the order of
    the source file is preserved.
    """

    def __init__(self, jobs: list[JobPosting] | None = None) -> None:
        self._jobs: tuple[JobPosting, ...] = tuple(jobs or [])

    @classmethod
    def from_csv(cls, path: str | Path) -> "JobCatalog":
        """Load postings from a CSV file.

        Rows without a title are skipped with a warning.
        """
        path = Path(path)
        if not path.exists():
            msg = f"Job catalog not found: {path}"
            raise FileNotFoundError(msg)

        jobs: list[JobPosting] = []
        with path.open(newline="", encoding="utf-8-sig") as fh:
            reader = csv.DictReader(fh)
            for line_no, row in enumerate(reader, start=2):
                fields = {
                    _COLUMN_ALIASES[fold_text(key)]: (value or "").strip()
                    for key, value in row.items()
                    if key and fold_text(key) in _COLUMN_ALIASES
                }
                if not fields.get("title"):
                    logger.warning("Skipping catalog row %d in %s: missing title", line_no, path)
                    continue
                jobs.append(JobPosting.model_validate(fields))

        logger.info("Loaded %d jobs from %s", len(jobs), path)
        return cls(jobs)

    @property
    def jobs(self) -> tuple[JobPosting, ...]:
        return self._jobs

    def first(self, n: int) -> list[JobPosting]:
        return list(self._jobs[:n])

    def jobs_by_seniority(self, seniority: str | SeniorityLevel) -> list[JobPosting]:
        level = SeniorityLevel.parse(seniority)
        return [job for job in self._jobs if job.seniority is level]

    def jobs_by_location(self, location: str) -> list[JobPosting]:
        """Postings in the given place, plus remote ones."""
        wanted = location.lower().strip()
        return [
            job
            for job in self._jobs
            if wanted in job.location.lower() or job.location.lower().strip() == "remoto"
        ]

    def jobs_by_skills(self, skills: str) -> list[JobPosting]:
        """Postings whose description mentions any of the comma-separated skills."""
        tokens = [s.strip() for s in skills.lower().split(",") if s.strip()]
        return [
            job
            for job in self._jobs
            if any(token in job.description.lower() for token in tokens)
        ]

    def __len__(self) -> int:
        return len(self._jobs)

    def __iter__(self) -> Iterator[JobPosting]:
        return iter(self._jobs)
