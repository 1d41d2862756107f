"""Service layer: region prober, fan-out coordinator and streaming responder."""
