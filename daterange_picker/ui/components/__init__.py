# daterange_picker/ui/components/__init__.py
from daterange_picker.ui.components.date_range_picker import DateRangePickerWidget, MonthPane

__all__ = ['DateRangePickerWidget', 'MonthPane']
