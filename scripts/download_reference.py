#!/usr/bin/env python3
"""
Download WHO child growth standard z-score tables into packaged CSVs.

This script fetches the WHO SD tables for length/height-for-age,
weight-for-age and BMI-for-age (boys and girls), keeps the Month and
SD3neg..SD3 columns, and writes one CSV per indicator and sex into
src/nutristat/data for use by nutristat.reference.

Length/height and BMI tables are published in two halves (0-2 and 2-5 years)
which overlap at month 24. The 0-2 year row wins for the overlap, so month 24
keeps its recumbent length values.
"""

import argparse
import hashlib
import io
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from tqdm import tqdm
from urllib3.util.retry import Retry

from nutristat.config import REFERENCE_COLUMNS, REFERENCE_FILE_PATTERN
from nutristat.models import Sex
from nutristat.reference import (
    Indicator,
    ReferenceDataset,
    validate_reference_integrity,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

WHO_BASE_URL = "https://www.who.int/childgrowth/standards"

# Packaged tables carry one decimal, as in the printed WHO SD tables
DECIMALS = 1

# (indicator, sex) -> WHO file stems, in merge order
DATA_SOURCES: Dict[Tuple[Indicator, Sex], List[str]] = {
    (Indicator.WEIGHT, Sex.MALE): ["tab_wfa_boys_z_0_5"],
    (Indicator.WEIGHT, Sex.FEMALE): ["tab_wfa_girls_z_0_5"],
    (Indicator.LENGTH, Sex.MALE): ["tab_lhfa_boys_z_0_2", "tab_lhfa_boys_z_2_5"],
    (Indicator.LENGTH, Sex.FEMALE): ["tab_lhfa_girls_z_0_2", "tab_lhfa_girls_z_2_5"],
    (Indicator.BMI, Sex.MALE): ["tab_bmi_boys_z_0_2", "tab_bmi_boys_z_2_5"],
    (Indicator.BMI, Sex.FEMALE): ["tab_bmi_girls_z_0_2", "tab_bmi_girls_z_2_5"],
}


def source_url(stem: str) -> str:
    return f"{WHO_BASE_URL}/{stem}.txt"


def download_table(url: str, timeout: int = 30) -> str:
    """Download a WHO table from URL with retries."""
    try:
        retry_strategy = Retry(
            total=3,
            status_forcelist=[429, 500, 502, 503, 504],
            backoff_factor=2,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)

        with requests.Session() as session:
            session.mount("https://", adapter)
            session.mount("http://", adapter)
            response = session.get(url, timeout=timeout, verify=True)
            response.raise_for_status()
            return response.text
    except Exception as e:
        logger.error(f"Failed to download {url}: {e}")
        raise


def compute_sha256(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def parse_who_table(content: str, name: str) -> pd.DataFrame:
    """
    Parse a tab-separated WHO z-score table.

    Args:
        content: Raw file text with a header row
        name: Source name used in error messages

    Returns:
        DataFrame with columns Month, SD3neg .. SD3; Month as int

    Raises:
        ValueError: If required columns are missing or cells are not numeric
    """
    df = pd.read_csv(io.StringIO(content.strip()), sep="\t")
    df.columns = [str(col).replace("\ufeff", "").strip() for col in df.columns]

    missing = [col for col in REFERENCE_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"{name}: missing columns {missing}")

    df = df[REFERENCE_COLUMNS].apply(pd.to_numeric, errors="coerce")
    if df.isna().any().any():
        raise ValueError(f"{name}: non-numeric or empty cells")

    df["Month"] = df["Month"].astype(int)
    thresholds = REFERENCE_COLUMNS[1:]
    df[thresholds] = df[thresholds].round(DECIMALS)
    return df


def merge_halves(frames: List[pd.DataFrame]) -> pd.DataFrame:
    """Concatenate table halves; on a repeated month the earlier frame wins."""
    merged = pd.concat(frames, ignore_index=True)
    merged = merged.drop_duplicates(subset="Month", keep="first")
    return merged.sort_values("Month").reset_index(drop=True)


def table_file_name(indicator: Indicator, sex: Sex) -> str:
    return REFERENCE_FILE_PATTERN.format(indicator=indicator.value, sex=sex.table_key)


def write_tables(
    tables: Dict[Tuple[Indicator, Sex], pd.DataFrame], output_dir: Path
) -> List[Path]:
    """Write each table as CSV into output_dir and return the paths."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for (indicator, sex), df in tables.items():
        path = output_dir / table_file_name(indicator, sex)
        df.to_csv(path, index=False)
        written.append(path)
    logger.info(f"Saved {len(written)} tables to {output_dir}")
    return written


def main(
    output_dir: Optional[Path] = None, strict_mode: bool = False
) -> List[Path]:
    """
    Download, validate and write all reference tables.

    Args:
        output_dir: Destination directory; defaults to src/nutristat/data
        strict_mode: Raise instead of writing a partial or incomplete set

    Returns:
        Paths of the CSV files written

    Raises:
        RuntimeError: In strict mode, if any source fails or months are missing
        ReferenceDataError: If downloaded thresholds are not non-decreasing
    """
    if output_dir is None:
        output_dir = Path(__file__).parent.parent / "src" / "nutristat" / "data"

    tables: Dict[Tuple[Indicator, Sex], pd.DataFrame] = {}
    failed_sources = []

    total_sources = sum(len(stems) for stems in DATA_SOURCES.values())
    with tqdm(total=total_sources, desc="Fetching tables") as pbar:
        for key, stems in DATA_SOURCES.items():
            halves = []
            for stem in stems:
                pbar.set_postfix({"source": stem})
                pbar.update(1)
                try:
                    content = download_table(source_url(stem))
                    logger.info(f"{stem}: sha256 {compute_sha256(content)}")
                    halves.append(parse_who_table(content, stem))
                except Exception as e:
                    failed_sources.append(stem)
                    logger.error(f"Failed to process {stem}: {e}")

            if len(halves) == len(stems):
                tables[key] = merge_halves(halves)

    if strict_mode and failed_sources:
        raise RuntimeError(
            f"Strict mode failed: Unable to process sources: {', '.join(failed_sources)}"
        )

    # Raises ReferenceDataError on decreasing thresholds or duplicate months
    dataset = ReferenceDataset.from_frames(tables)
    if not validate_reference_integrity(dataset) and strict_mode:
        raise RuntimeError("Strict mode failed: reference tables are incomplete")

    return write_tables(tables, Path(output_dir))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Download WHO growth standard z-score tables."
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for the CSV tables (default: src/nutristat/data)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Strict mode: exit on any error instead of continuing with warnings",
    )
    args = parser.parse_args()

    main(output_dir=args.output_dir, strict_mode=args.strict)
