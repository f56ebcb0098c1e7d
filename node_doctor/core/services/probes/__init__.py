"""Environment probes: each gathers one slice of the health snapshot."""
