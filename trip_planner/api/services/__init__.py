"""Services layered on the API clients: map session, routing, planning pipeline."""
