import argparse

import pytest
from amaranth.sim import Simulator


def pytest_addoption(parser):
    parser.addoption(
        "--vcd",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="whether to produce vcd files",
    )


@pytest.fixture
def run_sim(request):
    """Run a testbench against a combinational DUT, dumping a VCD on --vcd"""

    def run(dut, bench):
        sim = Simulator(dut)
        sim.add_testbench(bench)

        if request.config.getoption("--vcd"):
            vcd_name = f"{dut.__class__.__name__}_{request.node.name}.vcd"
            with sim.write_vcd(vcd_name):
                sim.run()
        else:
            sim.run()

    return run
