"""
Gateway entry point.

Run with:
    python -m expense_ledger
"""

import uvicorn

from expense_ledger.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "expense_ledger.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=False,
        log_config=None,
    )
