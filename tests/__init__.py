"""
Root package of the suite_money tests.

Only this directory carries an __init__.py. It makes `tests` importable as a package,
so shared builders are imported as `from tests.helpers.helper_registry import ...`
from any test module.

Test subdirectories (unit/suite_money/domain/monetary, unit/suite_money/utils, helpers)
work as namespace packages (PEP 420) and need no __init__.py of their own. Test module
names are therefore kept unique across the whole tree.
"""
