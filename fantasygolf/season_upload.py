"""
Import prior-season results from a spreadsheet export.

Each row is ``date, position, player, raw_score[, tournament_type[, scoring_format]]``
with dates as YYYY-MM-DD or DD/MM/YYYY. Rows sharing a date form one
tournament, named ``"<date> Tournament"`` and filed under the season whose
dates contain it. Golfers are matched by name, case-insensitively, and
created when unknown. Re-uploading the same file changes nothing.
"""

import io
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

import openpyxl
import polars as pl

from .cache import Cache, invalidate_leaderboards
from .constants import DEFAULT_TOURNAMENT_TYPE, GOLFERS, SCORES, SCORING_FORMATS, TOURNAMENT_TYPE_CONFIG, TOURNAMENTS
from .dates import parse_date
from .golfers import empty_stats, recalculate_golfer_stats
from .logging_config import timed
from .models import SeasonUploadResult
from .scores import score_fields
from .scoring import golfer_count_tier, resolve_scoring_format, tournament_type_config
from .seasons import find_season_for_date, list_seasons
from .store import MemoryStore

logger = logging.getLogger('fantasygolf.season_upload')

COLUMNS = ['date', 'position', 'player', 'raw_score', 'tournament_type', 'scoring_format']
NEW_GOLFER_PRICE = 1


def split_rows(csv_text: str) -> list[list[Optional[str]]]:
    """Split tab- or comma-delimited text (delimiter taken from the header) into raw rows."""
    lines = csv_text.splitlines()
    if not lines:
        return []
    delimiter = '\t' if '\t' in lines[0] else ','
    rows = []
    for line in lines[1:]:
        if not line.strip():
            continue
        parts = line.strip().split(delimiter)
        if len(parts) < 4:
            continue
        rows.append(_pad(parts))
    return rows


def _pad(parts: list[Any]) -> list[Optional[str]]:
    cells = [None if p is None else str(p) for p in parts[:len(COLUMNS)]]
    return cells + [None] * (len(COLUMNS) - len(cells))


def _cell_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.strftime('%Y-%m-%d')
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_results_workbook(path: Path | str, sheet_name: Optional[str] = None) -> list[list[Optional[str]]]:
    """
    Read result rows from an .xlsx file (first sheet unless ``sheet_name``).

    The first row is the header. Date cells are converted to YYYY-MM-DD.
    """
    wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
    try:
        ws = wb[sheet_name] if sheet_name else wb.worksheets[0]
        rows = []
        for values in ws.iter_rows(min_row=2, values_only=True):
            cells = [_cell_text(v) for v in values]
            if sum(1 for c in cells[:4] if c not in (None, '')) < 4:
                continue
            rows.append(_pad(cells))
    finally:
        wb.close()
    logger.debug(f'Read {len(rows)} result rows from {path}')
    return rows


def results_frame(rows: list[list[Optional[str]]]) -> pl.DataFrame:
    """
    Clean raw rows into typed results.

    Quotes and whitespace are stripped, type and format lowercased with
    defaults filled in, and rows whose position or score is not a whole
    number are dropped.
    """
    frame = pl.DataFrame(rows, schema={c: pl.Utf8 for c in COLUMNS}, orient='row')
    cleaned = pl.all().str.strip_chars().str.strip_chars('"').str.strip_chars()
    return (
        frame.with_columns(cleaned)
        .with_columns(
            pl.col('position').cast(pl.Int64, strict=False),
            pl.col('raw_score').cast(pl.Int64, strict=False),
            pl.when(pl.col('tournament_type').str.len_chars() > 0)
            .then(pl.col('tournament_type').str.to_lowercase())
            .otherwise(pl.lit(DEFAULT_TOURNAMENT_TYPE))
            .alias('tournament_type'),
            pl.when(pl.col('scoring_format').str.len_chars() > 0)
            .then(pl.col('scoring_format').str.to_lowercase())
            .otherwise(pl.lit('stableford'))
            .alias('scoring_format'),
        )
        .drop_nulls(['date', 'position', 'raw_score'])
    )


def split_player_name(player: str) -> tuple[str, str]:
    """Split on the first space: "Mary Ann Smith" -> ("Mary", "Ann Smith")."""
    first, _, last = player.strip().partition(' ')
    return first, last.strip()


def _tournament_settings(tournament_type: str, scoring_format: str) -> tuple[str, str, bool, int]:
    if tournament_type not in TOURNAMENT_TYPE_CONFIG:
        logger.warning(f'Unknown tournament type {tournament_type!r}, using {DEFAULT_TOURNAMENT_TYPE}')
        tournament_type = DEFAULT_TOURNAMENT_TYPE
    config = tournament_type_config(tournament_type)
    requested = scoring_format if scoring_format in SCORING_FORMATS else None
    return (
        tournament_type,
        resolve_scoring_format(tournament_type, requested),
        config['default_multi_day'],
        config['multiplier'],
    )


def process_results(
    store: MemoryStore,
    rows: list[list[Optional[str]]],
    cache: Optional[Cache] = None,
) -> SeasonUploadResult:
    """
    Load parsed result rows into tournaments, golfers and scores.

    Returns:
        Counts and a human-readable summary, including dates that matched no season
    """
    frame = results_frame(rows) if rows else pl.DataFrame(schema={c: pl.Utf8 for c in COLUMNS})
    result = SeasonUploadResult(rows_processed=frame.height)
    if frame.height == 0:
        result.summary = _summary(result)
        return result

    seasons = list_seasons(store)
    golfer_index = {
        (g['first_name'].lower(), g.get('last_name', '').lower()): g['id']
        for g in store.find(GOLFERS)
    }
    created_golfers: set[str] = set()
    matched_golfers: set[str] = set()
    affected_seasons: set[int] = set()
    now = datetime.now()

    for group in frame.partition_by('date', maintain_order=True):
        date_text = group['date'][0]
        when = parse_date(date_text)
        season = find_season_for_date(seasons, when) if when else None
        if season is None:
            result.unmatched_dates.append(date_text)
            continue

        season_number = season.year if season.name.isdigit() else 0
        affected_seasons.add(season_number)
        name = f'{date_text} Tournament'

        tournament = store.find_one(TOURNAMENTS, {'name': name, 'season': season_number})
        if tournament is None:
            tournament_type, scoring_format, is_multi_day, multiplier = _tournament_settings(
                group['tournament_type'][0], group['scoring_format'][0],
            )
            tournament = store.insert(TOURNAMENTS, {
                'name': name,
                'start_date': when,
                'end_date': when,
                'season': season_number,
                'tournament_type': tournament_type,
                'scoring_format': scoring_format,
                'is_multi_day': is_multi_day,
                'multiplier': multiplier,
                'golfer_count_tier': golfer_count_tier(group.height),
                'status': 'complete',
                'participating_golfer_ids': [],
                'created_at': now,
                'updated_at': now,
            })
            result.tournaments_created += 1

        operations = []
        participants = list(tournament.get('participating_golfer_ids') or [])
        for row in group.iter_rows(named=True):
            first, last = split_player_name(row['player'] or '')
            key = (first.lower(), last.lower())
            golfer_id = golfer_index.get(key)
            if golfer_id is None:
                doc = store.insert(GOLFERS, {
                    'first_name': first,
                    'last_name': last,
                    'price': NEW_GOLFER_PRICE,
                    'is_active': True,
                    **empty_stats(),
                    'created_at': now,
                    'updated_at': now,
                })
                golfer_id = golfer_index[key] = doc['id']
                created_golfers.add(golfer_id)
            elif golfer_id not in created_golfers:
                matched_golfers.add(golfer_id)

            fields = score_fields(tournament, True, row['position'], row['raw_score'])
            operations.append((
                'upsert',
                {'tournament_id': tournament['id'], 'golfer_id': golfer_id},
                {**fields, 'updated_at': now},
                {'created_at': now},
            ))
            if golfer_id not in participants:
                participants.append(golfer_id)

        store.bulk_write(SCORES, operations)
        result.scores_entered += len(operations)
        store.update(TOURNAMENTS, tournament['id'], {'participating_golfer_ids': participants, 'updated_at': now})

    with timed(logger, 'upload-stats', golfers=len(created_golfers | matched_golfers)):
        recalculate_golfer_stats(store, created_golfers | matched_golfers, now=now)
    for season_number in affected_seasons:
        invalidate_leaderboards(cache, season_number)

    result.golfers_created = len(created_golfers)
    result.golfers_matched = len(matched_golfers)
    result.summary = _summary(result)
    logger.info(result.summary)
    return result


def _summary(result: SeasonUploadResult) -> str:
    summary = (
        f'Processed {result.rows_processed} rows: '
        f'{result.golfers_created} golfers created, {result.golfers_matched} existing golfers matched, '
        f'{result.tournaments_created} tournaments created, {result.scores_entered} scores entered.'
    )
    if result.unmatched_dates:
        summary += (
            f' Warning: {len(result.unmatched_dates)} dates did not match any season: '
            f'{", ".join(result.unmatched_dates)}.'
        )
    return summary


def process_season_upload(store: MemoryStore, csv_text: str, cache: Optional[Cache] = None) -> SeasonUploadResult:
    """
    Import delimited results text.

    Example:
        text = 'date,position,player,rawScore\\n2026-03-07,1,Ann Lee,38\\n'
        result = process_season_upload(store, text)
        print(result.summary)
    """
    return process_results(store, split_rows(csv_text), cache=cache)


def process_season_workbook(
    store: MemoryStore,
    path: Path | str,
    sheet_name: Optional[str] = None,
    cache: Optional[Cache] = None,
) -> SeasonUploadResult:
    """Import results from an .xlsx export."""
    return process_results(store, parse_results_workbook(path, sheet_name), cache=cache)


def read_results_text(data: bytes) -> str:
    """Decode uploaded bytes, tolerating a UTF-8 byte order mark."""
    return io.TextIOWrapper(io.BytesIO(data), encoding='utf-8-sig').read()
