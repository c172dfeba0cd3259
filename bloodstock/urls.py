# bloodstock/urls.py
from django.urls import path
from . import views

urlpatterns = [
    # inventory
    path("blood-inventory/", views.inventory_collection, name="inventory"),
    path("blood-inventory/<int:pk>/", views.inventory_detail, name="inventory_detail"),
    path("blood-inventory/<int:pk>/status/", views.inventory_status, name="inventory_status"),
    path("blood-inventory/stock/", views.inventory_stock, name="inventory_stock"),
    path("blood-inventory/summary/", views.inventory_summary, name="inventory_summary"),
    path("blood-inventory/expiring/<int:days>/", views.inventory_expiring, name="inventory_expiring"),
    path("blood-inventory/allocate/", views.inventory_allocate, name="inventory_allocate"),
    path("blood-inventory/transfer/", views.inventory_transfer, name="inventory_transfer"),
    path("blood-inventory/compatibility/", views.compatibility, name="compatibility"),
    path("blood-inventory/compatible-blood/", views.compatible_blood, name="compatible_blood"),

    # parties
    path("donors/", views.donor_collection, name="donors"),
    path("donors/<int:pk>/", views.donor_detail, name="donor_detail"),
    path("donors/<int:pk>/appointments/upcoming/", views.donor_upcoming_appointments,
         name="donor_upcoming_appointments"),
    path("hospitals/", views.hospital_collection, name="hospitals"),
    path("hospitals/<int:pk>/", views.hospital_detail, name="hospital_detail"),

    # supply
    path("blood-donations/", views.donation_collection, name="donations"),
    path("blood-donations/<int:pk>/", views.donation_detail, name="donation_detail"),
    path("blood-donations/record/", views.donation_record, name="donation_record"),
    path("appointments/", views.appointment_collection, name="appointments"),
    path("appointments/<int:pk>/", views.appointment_detail, name="appointment_detail"),
    path("appointments/<int:pk>/status/", views.appointment_status, name="appointment_status"),
    path("appointments/<int:pk>/cancel/", views.appointment_cancel, name="appointment_cancel"),

    # demand
    path("blood-requests/", views.request_collection, name="requests"),
    path("blood-requests/<int:pk>/fulfil/", views.request_fulfil, name="request_fulfil"),
    path("emergency-notifications/", views.emergency_collection, name="emergencies"),
    path("emergency-notifications/<int:pk>/", views.emergency_detail, name="emergency_detail"),
    path("emergency-notifications/<int:pk>/status/", views.emergency_status, name="emergency_status"),
]
