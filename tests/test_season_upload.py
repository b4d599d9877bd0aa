"""Tests for prior-season result imports."""

from datetime import datetime

import openpyxl
import pytest

from fantasygolf.constants import GOLFERS, SCORES, TOURNAMENTS
from fantasygolf.golfers import create_golfer
from fantasygolf.season_upload import (
    parse_results_workbook,
    process_season_upload,
    process_season_workbook,
    split_player_name,
    split_rows,
)
from fantasygolf.seasons import create_season

RESULTS = '\n'.join([
    'date,position,player,rawScore,tournamentType,scoringFormat',
    '2025-03-08,1,Ann Lee,38,,',
    '2025-03-08,2,Bob Stone,33,,',
    '2025-03-08,3,dan ray,30,,',
    '"2025-03-15","1","ann lee","36","presidents_cup",""',
    '2025-03-15,2,Cara Mae Jones,30,presidents_cup,',
    '2030-01-01,1,Ann Lee,40,,',
    'bad,row',
    '2025-03-22,x,Ann Lee,30,,',
])


@pytest.fixture
def season_2025(store):
    return create_season(store, {
        'name': '2025',
        'start_date': datetime(2025, 1, 1),
        'end_date': datetime(2025, 12, 31),
    })


@pytest.fixture
def dan(store):
    return create_golfer(store, {'first_name': 'Dan', 'last_name': 'Ray', 'price': 6_000_000})


def _golfer(store, first, last):
    return next(g for g in store.find(GOLFERS) if (g['first_name'], g['last_name']) == (first, last))


class TestParsing:
    """Splitting raw text into rows."""

    def test_comma_rows(self):
        """Test short rows are skipped and missing columns padded."""
        rows = split_rows(RESULTS)
        assert len(rows) == 7
        assert rows[0] == ['2025-03-08', '1', 'Ann Lee', '38', '', '']

    def test_tab_delimited(self):
        """Test a tab in the header switches the delimiter."""
        rows = split_rows('date\tposition\tplayer\traw\n2025-03-08\t1\tAnn Lee\t38\n')
        assert rows == [['2025-03-08', '1', 'Ann Lee', '38', None, None]]

    def test_player_names(self):
        """Test names split on the first space."""
        assert split_player_name('Cara Mae Jones') == ('Cara', 'Mae Jones')
        assert split_player_name('Cher') == ('Cher', '')


class TestProcessSeasonUpload:
    """Loading results into the league."""

    def test_summary(self, store, season_2025, dan):
        """Test counts and the unmatched-date warning."""
        result = process_season_upload(store, RESULTS)
        assert result.summary == (
            'Processed 6 rows: 3 golfers created, 1 existing golfers matched, '
            '2 tournaments created, 5 scores entered. '
            'Warning: 1 dates did not match any season: 2030-01-01.'
        )
        assert result.unmatched_dates == ['2030-01-01']

    def test_tournaments(self, store, season_2025, dan):
        """Test one completed tournament per date with type-derived scoring."""
        process_season_upload(store, RESULTS)
        rollup = store.find_one(TOURNAMENTS, {'name': '2025-03-08 Tournament', 'season': 2025})
        cup = store.find_one(TOURNAMENTS, {'name': '2025-03-15 Tournament', 'season': 2025})
        assert (rollup['tournament_type'], rollup['multiplier'], rollup['status']) == ('rollup_stableford', 1, 'complete')
        assert rollup['start_date'] == datetime(2025, 3, 8)
        assert rollup['golfer_count_tier'] == '0-10'
        assert len(rollup['participating_golfer_ids']) == 3
        assert (cup['tournament_type'], cup['scoring_format'], cup['multiplier']) == ('presidents_cup', 'stableford', 3)

    def test_scores_and_golfers(self, store, season_2025, dan):
        """Test points, case-insensitive matching and new-golfer defaults."""
        process_season_upload(store, RESULTS)
        ann = _golfer(store, 'Ann', 'Lee')
        cara = _golfer(store, 'Cara', 'Mae Jones')
        points = sorted(s['multiplied_points'] for s in store.find(SCORES, {'golfer_id': ann['id']}))
        assert points == [13, 39]
        assert store.find(SCORES, {'golfer_id': cara['id']})[0]['multiplied_points'] == 21
        assert store.count(SCORES, {'golfer_id': dan.id}) == 1
        assert (ann['price'], ann['is_active']) == (1, True)
        assert _golfer(store, 'Dan', 'Ray')['price'] == 6_000_000

    def test_stats_rebuilt(self, store, season_2025, dan):
        """Test the 2025 snapshot reflects the imported results."""
        process_season_upload(store, RESULTS)
        stats = _golfer(store, 'Ann', 'Lee')['stats_2025']
        assert stats['times_played'] == 2
        assert stats['times_finished_1st'] == 2
        assert stats['times_scored_36_plus'] == 2

    def test_reupload_is_idempotent(self, store, season_2025, dan):
        """Test importing the same file twice creates nothing new."""
        process_season_upload(store, RESULTS)
        result = process_season_upload(store, RESULTS)
        assert (result.golfers_created, result.tournaments_created) == (0, 0)
        assert result.golfers_matched == 4
        assert store.count(SCORES) == 5
        assert store.count(TOURNAMENTS) == 2

    def test_forced_format(self, store, season_2025):
        """Test a medal type overrides a stableford format in the file."""
        text = 'date,position,player,raw,type,format\n15/06/2025,1,Ann Lee,-1,weekend_medal,stableford\n'
        process_season_upload(store, text)
        tournament = store.find(TOURNAMENTS)[0]
        assert tournament['name'] == '15/06/2025 Tournament'
        assert (tournament['scoring_format'], tournament['multiplier']) == ('medal', 2)
        assert store.find(SCORES)[0]['multiplied_points'] == (10 + 3) * 2

    def test_empty_upload(self, store, season_2025):
        """Test a header-only file processes nothing."""
        result = process_season_upload(store, 'date,position,player,raw\n')
        assert result.summary.startswith('Processed 0 rows')


class TestWorkbookUpload:
    """Loading results from .xlsx."""

    @pytest.fixture
    def workbook(self, tmp_path):
        path = tmp_path / 'results.xlsx'
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = 'Results'
        ws.append(['Date', 'Position', 'Player', 'Raw score'])
        ws.append([datetime(2025, 3, 8), 1, 'Ann Lee', 38])
        ws.append([datetime(2025, 3, 8), 2, 'Bob Stone', 31])
        ws.append([None, None, None, None])
        wb.save(path)
        return path

    def test_parse(self, workbook):
        """Test date cells become ISO dates and blank rows are skipped."""
        rows = parse_results_workbook(workbook, sheet_name='Results')
        assert rows == [
            ['2025-03-08', '1', 'Ann Lee', '38', None, None],
            ['2025-03-08', '2', 'Bob Stone', '31', None, None],
        ]

    def test_process(self, store, season_2025, workbook):
        """Test a workbook import creates the tournament and scores."""
        result = process_season_workbook(store, workbook)
        assert (result.tournaments_created, result.scores_entered, result.golfers_created) == (1, 2, 2)
