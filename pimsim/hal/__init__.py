from pimsim.hal.simulator import CompletedExecution, SimulatorDevice

__all__ = ['CompletedExecution', 'SimulatorDevice']
