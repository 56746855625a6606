from django.urls import path

from . import views

app_name = "notifications"

urlpatterns = [
    path("reminders/run/", views.run_review_reminders, name="run-review-reminders"),
]
