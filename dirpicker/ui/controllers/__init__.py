from .picker_controller import PickerController

__all__ = ["PickerController"]
