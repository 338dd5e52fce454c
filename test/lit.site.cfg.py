import os
import shutil

# Get the test directory and project directory dynamically
script_dir = os.path.dirname(os.path.abspath(__file__))
project_dir = os.path.dirname(script_dir)

config.evmtrace_dir = project_dir

# Find evmtrace dynamically
if shutil.which('evmtrace'):
    config.evmtrace = shutil.which('evmtrace')
elif os.path.exists(os.path.join(project_dir, 'MyEnv', 'bin', 'evmtrace')):
    config.evmtrace = os.path.join(project_dir, 'MyEnv', 'bin', 'evmtrace')
else:
    config.evmtrace = None

config.rpc_url = os.environ.get('EVMTRACE_RPC_URL', 'http://localhost:8545')
# Transaction hash for the live trace test; the test is skipped when unset
config.test_tx = os.environ.get('EVMTRACE_TEST_TX', '')

# Load the main config
lit_config.load_config(config, os.path.join(script_dir, "lit.cfg.py"))
