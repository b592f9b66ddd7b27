"""HTTP routers exposing the market data core to the dashboard."""
