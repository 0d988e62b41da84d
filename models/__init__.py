import importlib
import glob
import os

# List all model files next to this package
models = glob.glob(os.path.join(os.path.dirname(__file__), "*.py"))
modules = []

for file in sorted(models):
    # Extract the module name from the file path
    module_name = os.path.splitext(os.path.basename(file))[0]
    if module_name not in ("__init__", "base"):
        # Import the module dynamically, registering its tables on Base.metadata
        module = importlib.import_module(f"models.{module_name}")
        modules.append(module)

# Emulate from module import * behaviour
for module in modules:
    names = [name for name in module.__dict__ if not name.startswith('_')]
    globals().update({name: getattr(module, name) for name in names})
