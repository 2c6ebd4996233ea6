import re
from datetime import date
from .constants import AppConstants

BARANGAY_CODE_PATTERN = re.compile(r"^\d{9,10}$")
HOUSEHOLD_CODE_PATTERN = re.compile(r"^\d{9,10}-\d{4}-\d{4}-\d{4}$")
MOBILE_NUMBER_PATTERN = re.compile(r"^(09|\+639)\d{9}$")


class ValidationHelpers:
    @staticmethod
    def validate_mobile_number(mobile: str) -> bool:
        """Philippine mobile number, 09XXXXXXXXX or +639XXXXXXXXX"""
        if not mobile:
            return True  # Optional field

        compact = re.sub(r"[\s-]", "", mobile)
        return MOBILE_NUMBER_PATTERN.match(compact) is not None

    @staticmethod
    def validate_barangay_code(code: str) -> bool:
        return bool(code) and BARANGAY_CODE_PATTERN.match(code) is not None

    @staticmethod
    def validate_household_code(code: str) -> bool:
        return bool(code) and HOUSEHOLD_CODE_PATTERN.match(code) is not None

    @staticmethod
    def validate_birthdate(birthdate: date, today: date = None) -> bool:
        today = today or date.today()
        if birthdate > today:
            return False
        return today.year - birthdate.year <= AppConstants.MAX_RESIDENT_AGE
