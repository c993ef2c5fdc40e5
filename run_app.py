"""Run the lead generation API from project root. Use: python run_app.py"""
import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "lead_signal_ai.api:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )
