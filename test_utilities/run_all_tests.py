"""Run all unit tests."""
import sys
import io
import importlib
from pathlib import Path

# Fix Windows console encoding
if sys.platform == 'win32':
    # Only wrap if not already wrapped
    if not isinstance(sys.stdout, io.TextIOWrapper) or sys.stdout.encoding != 'utf-8':
        sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace')
    if not isinstance(sys.stderr, io.TextIOWrapper) or sys.stderr.encoding != 'utf-8':
        sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8', errors='replace')

# Add test_utilities to path
sys.path.insert(0, str(Path(__file__).parent))

print("=" * 80)
print("Boss Timer Bot - Test Suite")
print("=" * 80)
print()

# Every test_* function in each module is run
tests = [
    ("Timestamp Formatter", "test_timestamp"),
    ("Boss Database", "test_database"),
    ("Spawn Engine", "test_spawn_engine"),
    ("Alert Scheduler", "test_alerts"),
    ("Commands", "test_commands"),
    ("Settings", "test_settings"),
    ("Keep-Alive", "test_keep_alive"),
    ("Discord Bot", "test_bot"),
    ("Logging", "test_logger"),
]

passed = 0
failed = 0

for test_name, test_module in tests:
    print(f"\nRunning {test_name} tests...")
    print("-" * 80)
    try:
        module = importlib.import_module(test_module)
        test_funcs = [getattr(module, x) for x in dir(module) if x.startswith('test_')]
        if not test_funcs:
            print(f"[FAIL] {test_name} tests FAILED - no test functions in '{test_module}'")
            failed += 1
            continue
        for test_func in test_funcs:
            test_func()
        passed += 1
        print(f"[PASS] {test_name} tests PASSED ({len(test_funcs)} test(s))")
    except Exception as e:
        print(f"[FAIL] {test_name} tests FAILED: {e}")
        import traceback
        traceback.print_exc()
        failed += 1

print("\n" + "=" * 80)
print(f"Test Results: {passed} passed, {failed} failed")
print("=" * 80)

if failed > 0:
    sys.exit(1)
