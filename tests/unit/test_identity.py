"""
Unit Tests - Identity Resolution
"""
import pytest

from surveyor_stats.schemas import EmployeeIdentity
from surveyor_stats.transformation import IdentityResolver, MatchTier


class TestIdentityResolver:
    """Tests for IdentityResolver"""

    @pytest.mark.parametrize("label, employee_id, tier", [
        ("J. Smith", "emp-1", MatchTier.ALIAS),
        ("j. smith", "emp-1", MatchTier.ALIAS_LOWER),
        ("John Smith", "emp-1", MatchTier.FULL_NAME),
        ("Garcia, Maria", "emp-2", MatchTier.REVERSED_NAME),
        ("Maria", "emp-2", MatchTier.FIRST_NAME),
        ("Garcia", "emp-2", MatchTier.LAST_NAME),
        ("maria.garcia", "emp-2", MatchTier.EMAIL_LOCAL_PART),
    ])
    def test_resolves_every_tier(self, employees, label, employee_id, tier):
        """Test each tier resolves to the right employee"""
        match = IdentityResolver(employees).resolve(label)

        assert match is not None
        assert match.employee_id == employee_id
        assert match.tier == tier

    def test_falls_back_to_lower_case(self, employees):
        """Test an upper-cased label resolves through its lower-cased form"""
        match = IdentityResolver(employees).resolve("MARIA GARCIA")

        assert match.employee_id == "emp-2"
        assert match.key == "maria garcia"

    def test_unknown_label(self, employees):
        """Test a label matching no tier returns None"""
        assert IdentityResolver(employees).resolve("Unknown Person") is None

    def test_alias_beats_name_tiers(self):
        """Test an alias wins over another employee's last name"""
        employees = [
            EmployeeIdentity("emp-a", "Chris", "Lee", "clee@example.com"),
            EmployeeIdentity("emp-b", "Dana", "Park", "dpark@example.com", alias="Lee"),
        ]

        match = IdentityResolver(employees).resolve("Lee")

        assert match.employee_id == "emp-b"
        assert match.via_alias

    def test_last_registered_wins_within_tier(self):
        """Test a shared first name resolves to the later employee"""
        employees = [
            EmployeeIdentity("emp-a", "Chris", "Lee"),
            EmployeeIdentity("emp-b", "Chris", "Park"),
        ]
        resolver = IdentityResolver(employees)

        assert resolver.resolve("Chris").employee_id == "emp-b"
        assert resolver.overwrites > 0

    def test_higher_tier_of_lowered_form_wins(self):
        """Test the lower-cased form wins when it hits a higher tier"""
        employees = [
            EmployeeIdentity("emp-a", "Sam", "Pat"),
            EmployeeIdentity("emp-b", "Alex", "Morgan", alias="pat"),
        ]

        match = IdentityResolver(employees).resolve("Pat")

        assert match.employee_id == "emp-b"
        assert match.tier == MatchTier.ALIAS

    def test_as_given_form_wins_on_equal_tier(self, employees):
        """Test the label as given is preferred on a tier tie"""
        match = IdentityResolver(employees).resolve("Dana")

        assert match.key == "Dana"
        assert match.tier == MatchTier.FIRST_NAME

    def test_blank_fields_register_no_keys(self):
        """Test missing names and email add nothing to the table"""
        resolver = IdentityResolver([EmployeeIdentity("emp-a", alias="  ")])

        assert len(resolver) == 0

    def test_tier_priorities_are_ordered(self):
        """Test alias tiers outrank name tiers"""
        priorities = [tier.priority for tier in MatchTier]

        assert priorities == sorted(priorities)
        assert MatchTier.ALIAS_LOWER.is_alias
        assert not MatchTier.FULL_NAME.is_alias
