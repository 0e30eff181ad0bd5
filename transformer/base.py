"""Abstract base class for calendar model transformers."""

from abc import ABC, abstractmethod
from typing import Any

from recurrence.models import CalendarModel


class BaseTransformer(ABC):
    """Abstract base class defining the interface for model transformers.
    
    Extend this class to implement transformers for different output formats
    (e.g., iCalendar, JSON, etc.).
    """
    
    @abstractmethod
    def transform(self, model: CalendarModel) -> Any:
        """Transform an assembled calendar model into the target format.
        
        Args:
            model: Recurring series and flat events to encode.
            
        Returns:
            Transformed data in the target format.
        """
        pass
    
    @abstractmethod
    def save(self, output_path: str) -> None:
        """Save the transformed data to a file.
        
        Args:
            output_path: Path to the output file.
        """
        pass
