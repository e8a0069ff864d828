"""
FastAPI Integration Example

A CPU-bound endpoint that stays polite to concurrent requests.

To run:
  uvicorn examples.fastapi_app:app --loop asyncio --port 8000
"""

from fastapi import FastAPI

from coopyield import CoopOptions, create_coop_yield

app = FastAPI()
options = CoopOptions.from_env()

@app.get("/")
async def root():
    return {"message": "coopyield + FastAPI works!"}

@app.get("/work")
async def work(n: int = 1_000_000):
    """Sum a range, yielding to other requests as the budgets run out."""
    yielder = create_coop_yield(options)
    total = 0
    for i in range(n):
        total += i
        if yielder.check():
            await yielder.yield_
    return {"total": total}
