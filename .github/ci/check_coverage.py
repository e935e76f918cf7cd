"""Fail the CI job when installer test coverage drops below the threshold.

Usage: python .github/ci/check_coverage.py [coverage.xml]
"""

import sys
import xml.etree.ElementTree as ET

COVERAGE_THRESHOLD = 85.0
DEFAULT_COVERAGE_FILE = "coverage.xml"  # Written by `pytest --cov --cov-report=xml`


def read_line_rate(coverage_file: str) -> float:
    """Return the overall line coverage percentage from a Cobertura report."""
    root = ET.parse(coverage_file).getroot()
    # The report's root element is <coverage>; older writers nest it
    element = root if root.tag == "coverage" else root.find("coverage")
    if element is None or "line-rate" not in element.attrib:
        raise ValueError(f"no line-rate found in {coverage_file}")
    return float(element.attrib["line-rate"]) * 100


def main(argv: list[str]) -> int:
    coverage_file = argv[1] if len(argv) > 1 else DEFAULT_COVERAGE_FILE
    try:
        percentage = read_line_rate(coverage_file)
    except FileNotFoundError:
        print(f"Error: {coverage_file} not found. Run pytest --cov --cov-report=xml first.")
        return 1
    except (ET.ParseError, ValueError) as e:
        print(f"Error: could not read coverage report: {e}")
        return 1

    if percentage < COVERAGE_THRESHOLD:
        print(
            f"Error: waiveo_installer coverage {percentage:.2f}% is below "
            f"the required {COVERAGE_THRESHOLD}%"
        )
        return 1
    print(f"waiveo_installer coverage {percentage:.2f}% (threshold {COVERAGE_THRESHOLD}%)")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
