"""Unit tests for validation functions."""

from fantasygolf.validators import validate_podium, validate_roster, validate_score_record


def _field(count, positions=()):
    """``count`` participants, the first ones holding ``positions``."""
    entries = [{'golfer_id': f'g{i}', 'participated': True, 'position': None} for i in range(count)]
    for entry, position in zip(entries, positions):
        entry['position'] = position
    return entries


class TestValidatePodium:
    """Tests for bulk-entry podium rules."""

    def test_nobody_played(self):
        """Test a submission without participants is rejected."""
        entries = [{'golfer_id': 'g1', 'participated': False, 'position': None}]
        assert validate_podium(entries) == ['At least one golfer must have participated']

    def test_small_field_needs_winner(self):
        """Test up to 10 golfers require a 1st place."""
        assert validate_podium(_field(5, [1])) == []
        assert validate_podium(_field(10, [2])) == ['With 1-10 golfers, you must assign a 1st place finish']

    def test_medium_field_needs_first_and_second(self):
        """Test 11-19 golfers require 1st and 2nd."""
        assert validate_podium(_field(12, [1, 2])) == []
        assert validate_podium(_field(12, [1])) == [
            'With 10-20 golfers, you must assign both 1st and 2nd place finishes'
        ]

    def test_large_field_needs_full_podium(self):
        """Test 20+ golfers require 1st, 2nd and 3rd."""
        assert validate_podium(_field(20, [1, 2, 3])) == []
        assert validate_podium(_field(20, [1, 2])) == [
            'With 20+ golfers, you must assign 1st, 2nd, and 3rd place finishes'
        ]

    def test_duplicate_podium_place(self):
        """Test a podium place cannot be assigned twice."""
        assert validate_podium(_field(3, [1, 1, 2])) == [
            'Duplicate positions found. Each position (1st, 2nd, 3rd) can only be assigned once'
        ]

    def test_non_participants_ignored(self):
        """Test non-participants don't count toward the field size."""
        entries = _field(4, [1]) + [{'golfer_id': f'x{i}', 'participated': False} for i in range(30)]
        assert validate_podium(entries) == []


class TestValidateRoster:
    """Tests for team selection rules."""

    prices = {f'g{i}': 5_000_000 for i in range(1, 9)}
    team = [f'g{i}' for i in range(1, 7)]

    def test_valid_team(self):
        """Test six known golfers under budget with a captain pass."""
        assert validate_roster(self.team, 'g1', self.prices) == []

    def test_wrong_size(self):
        """Test the roster must have exactly six golfers."""
        assert validate_roster(self.team[:5], None, self.prices) == ['You must select exactly 6 golfers']

    def test_duplicates(self):
        """Test a golfer can't be picked twice."""
        team = self.team[:5] + ['g1']
        assert validate_roster(team, None, self.prices) == ['Duplicate golfers are not allowed']

    def test_unknown_golfer(self):
        """Test every golfer must exist."""
        team = self.team[:5] + ['ghost']
        assert validate_roster(team, None, self.prices) == ['One or more golfers not found']

    def test_captain_outside_team(self):
        """Test the captain must be one of the six."""
        assert validate_roster(self.team, 'g8', self.prices) == ['Captain must be one of the selected golfers']

    def test_over_budget(self):
        """Test the total price may not exceed the cap."""
        prices = {gid: 10_000_000 for gid in self.team}
        assert validate_roster(self.team, None, prices) == ['Budget exceeded. Maximum is $50M']

    def test_budget_exactly_at_cap(self):
        """Test spending exactly the cap is allowed."""
        prices = {gid: 10_000_000 for gid in self.team[:5]}
        prices['g6'] = 0
        assert validate_roster(self.team, None, prices) == []


class TestValidateScoreRecord:
    """Tests for stored score consistency checks."""

    def test_consistent_scores(self):
        """Test well-formed participant and non-participant documents."""
        played = {'participated': True, 'position': 1, 'raw_score': 36,
                  'base_points': 10, 'bonus_points': 3, 'multiplied_points': 39}
        skipped = {'participated': False, 'position': None, 'raw_score': None,
                   'base_points': 0, 'bonus_points': 0, 'multiplied_points': 0}
        assert validate_score_record(played) == []
        assert validate_score_record(skipped) == []

    def test_non_participant_with_points(self):
        """Test a non-participant carrying inputs or points is flagged."""
        score = {'golfer_id': 'g1', 'tournament_id': 't1', 'participated': False,
                 'position': 2, 'multiplied_points': 7}
        errors = validate_score_record(score)
        assert len(errors) == 2
        assert all(e.startswith('g1@t1') for e in errors)

    def test_multiplied_not_a_multiple(self):
        """Test multiplied points must be a multiple of base + bonus."""
        score = {'participated': True, 'base_points': 10, 'bonus_points': 3, 'multiplied_points': 40}
        assert 'not a multiple of 13' in validate_score_record(score)[0]
