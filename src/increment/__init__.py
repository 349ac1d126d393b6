"""
Increment: MMM vs attribution channel analytics.

Compares Marketing Mix Modeling output against channel attribution over
shared spend data, to show how much attribution over-credits each channel
relative to MMM's incremental lift.

Quickstart::

    from increment.session import Session
    from increment.contracts import ViewRequest

    session = Session()
    session.upload("mmm", open("mmm.json").read(), "mmm.json")
    session.upload("attribution", open("attr.csv").read(), "attr.csv")
    session.upload("spend", open("spend.csv").read(), "spend.csv")
    result = session.view(ViewRequest(view="comparison", metric="cpa"))
"""

__version__ = "0.1.0"
