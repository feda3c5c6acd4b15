"""HTTP gateway for the LSS bus."""
