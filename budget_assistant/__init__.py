"""Top-level package for the Budget Assistant.

The primary modules are:

* ``recurrence`` - when bills fall due inside a pay-cycle window
* ``allocation`` - splitting income into the Fire, Smile and Mojo buckets
* ``summary`` - dashboard aggregates
* ``workspace`` - the application shell pages talk to
* ``visualization`` - functions that generate Plotly figures

To run the app from the command line you can execute:

```bash
streamlit run budget_assistant/Home.py
```
"""

from . import allocation  # noqa: F401  # re-exported for convenience
from . import recurrence  # noqa: F401  # re-exported for convenience
from . import summary  # noqa: F401  # re-exported for convenience

__all__ = ["allocation", "recurrence", "summary"]
